from typing import List


class DataBlock:
    """
    wrapper around a list of symbols.

    The class is a wrapper around a list of symbols (self.data_list). The data_block is typically used
    to represent input to the interval encoder (or output from the interval decoder).
    Its symbol counts can be used to build a Model (see Model.from_data_block)
    """

    def __init__(self, data_list: List):
        self.data_list = data_list

    def __repr__(self):
        return f"DataBlock({self.data_list!r})"

    @property
    def size(self):
        return len(self.data_list)

    def get_counts(self, order=0):
        """returns a dictionary of counts for symbols in self.data_list

        The symbols appear in the dict in order of their first occurrence in data_list

        Args:
            order (int, optional): (the order of k-mer for which counts need to be obtained) Defaults to 0.

        Raises:
            NotImplementedError: If order !=0, as it is not implemented yet

        Returns:
            dict: {symbol:count, ...}
        """

        if order != 0:
            raise NotImplementedError("[order != 0] counts not implemented")

        count_dict = {}
        for d in self.data_list:
            count_dict[d] = count_dict.get(d, 0) + 1

        return count_dict


def test_data_block_basic_ops():
    """checks basic operations for a DataBlock"""
    data_block = DataBlock([1, 0, 0, 0, 1, 1, 0])

    assert data_block.size == 7

    # counts are in order of first occurrence
    counts_dict = data_block.get_counts(order=0)
    assert counts_dict == {1: 3, 0: 4}
    assert list(counts_dict) == [1, 0]
