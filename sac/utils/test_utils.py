"""
Utility functions useful for testing
"""

from typing import Tuple
import numpy as np
from sac.core.data_block import DataBlock
from sac.core.prob_dist import ProbabilityDist


def get_random_data_block(prob_dist: ProbabilityDist, size: int, seed: int = None):
    """generates i.i.d random data from the given prob distribution

    NOTE: partial distributions (summing to less than 1) are renormalized for sampling

    Args:
        prob_dist (ProbabilityDist): input probability distribution
        size (int): size of the block to be returned
        seed (int): random seed used to generate the data
    """

    rng = np.random.default_rng(seed)
    p = np.array(prob_dist.prob_list, dtype=np.float64)
    data = rng.choice(prob_dist.alphabet, size=size, p=p / np.sum(p))
    return DataBlock(data.tolist())


def are_blocks_equal(data_block_1: DataBlock, data_block_2: DataBlock):
    """
    return True is the blocks are equal
    """
    if data_block_1.size != data_block_2.size:
        return False

    for inp_symbol, out_symbol in zip(data_block_1.data_list, data_block_2.data_list):
        if inp_symbol != out_symbol:
            return False

    return True


def try_lossless_interval_coding(
    data_block: DataBlock, encoder, decoder, send_num_symbols: bool = False
) -> Tuple[bool, Tuple[float, float]]:
    """Encodes the data_block to an interval, decodes it back and returns True if this was lossless

    Args:
        data_block (DataBlock): input data_block to encode
        encoder (IntervalEncoder): Encoder obj
        decoder (IntervalDecoder): Decoder obj to test with
        send_num_symbols (bool, optional): if True, the decoder is told the number of symbols to decode,
            else it decodes until no symbol range contains the interval. Defaults to False.

    Returns:
        Tuple[bool, Tuple[float, float]]: whether coding is lossless, the encoded (low, high) interval
    """
    interval = encoder.encode_block(data_block)

    num_symbols = data_block.size if send_num_symbols else None
    decoded_block = decoder.decode_block(interval, num_symbols=num_symbols)

    return are_blocks_equal(data_block, decoded_block), interval
