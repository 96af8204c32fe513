import numpy as np
import pytest
import unittest


class ProbabilityDist:
    """
    Wrapper around an ordered probability dict {symbol: probability}

    The order of the dict is the order in which a Model lays out the symbol ranges.
    The probabilities need not sum to 1: a sum smaller than 1 leaves an unused
    "dead zone" at the top of [0, 1)
    """

    def __init__(self, prob_dict=None):
        self._validate_prob_dist(prob_dict)

        # NOTE: We use the fact that since python 3.6, dictionaries in python are
        # also OrderedDicts. https://realpython.com/python-ordereddict/
        self.prob_dict = prob_dict

    def __repr__(self):
        return f"ProbabilityDist({self.prob_dict.__repr__()})"

    @property
    def alphabet(self):
        return list(self.prob_dict)

    @property
    def prob_list(self):
        return [self.prob_dict[s] for s in self.alphabet]

    @property
    def total_prob(self) -> float:
        return sum(self.prob_list)

    def items(self):
        """(symbol, probability) pairs in dict order"""
        return list(self.prob_dict.items())

    def probability(self, symbol):
        return self.prob_dict[symbol]

    @staticmethod
    def _validate_prob_dist(prob_dict):
        """
        checks if each value of the prob dist is non-negative,
        and the dist sums to at most 1
        """
        if not prob_dict:
            raise ValueError("probability dict is empty")

        sum_of_probs = 0
        for symbol, prob in prob_dict.items():
            if not prob >= 0:
                raise ValueError(f"probability of {symbol!r} is negative or NaN: {prob}")
            sum_of_probs += prob

        # NOTE: allow for the rounding error of Frequencies.get_prob_dist
        if sum_of_probs > 1.0 + 1e-8:
            raise ValueError("probabilities sum to more than 1")


class ProbabilityDistTest(unittest.TestCase):
    def test_creation(self):
        """
        checks if the creation and validity checks are passing for valid distribution
        """
        dyadic_dist = ProbabilityDist({"A": 0.5, "B": 0.25, "C": 0.25})
        assert dyadic_dist.total_prob == 1.0
        assert dyadic_dist.items() == [("A", 0.5), ("B", 0.25), ("C", 0.25)]
        assert dyadic_dist.probability("B") == 0.25

        # partial distributions are allowed
        partial_dist = ProbabilityDist({"a": 0.5, "b": 0.25, "c": 0.125})
        assert partial_dist.total_prob == 0.875
        assert partial_dist.alphabet == ["a", "b", "c"]

    def test_validation_failure(self):
        """
        test if init fails for incorrect distributions
        """
        with self.assertRaises(ValueError):
            ProbabilityDist({"H": 0.7, "T": 0.4})

        with self.assertRaises(ValueError):
            ProbabilityDist({"H": -0.1, "T": 0.4})

        with self.assertRaises(ValueError):
            ProbabilityDist({})


class Frequencies:
    """
    Wrapper around a frequency dict
    NOTE: Frequencies is a typical way to represent probability distributions using integers
    """

    def __init__(self, freq_dict=None):
        self._validate_freq_dist(freq_dict)

        # NOTE: We use the fact that since python 3.6, dictionaries in python are
        # also OrderedDicts. https://realpython.com/python-ordereddict/
        self.freq_dict = freq_dict

    def __repr__(self):
        return f"Frequencies({self.freq_dict.__repr__()})"

    @property
    def total_freq(self) -> int:
        """returns the sum of all the frequencies"""
        return int(np.sum(list(self.freq_dict.values())))

    @property
    def cumulative_freq_dict(self) -> dict:
        """return a dict of sum of frequencies of symbols preceeding symbol
        for example: freq_dict = {A: 7,B: 1,C: 3}
        cumulative_freq_dict = {A: 0, B: 7, C: 8}

        """
        cum_freq_dict = {}
        _sum = 0
        for a, p in self.freq_dict.items():
            cum_freq_dict[a] = _sum
            _sum += int(p)
        return cum_freq_dict

    def frequency(self, symbol) -> int:
        return int(self.freq_dict[symbol])

    def get_prob_dist(self) -> ProbabilityDist:
        """converts the frequencies to a ProbabilityDist with the same symbol order"""
        total_freq = self.total_freq
        prob_dict = {}
        for s, f in self.freq_dict.items():
            prob_dict[s] = f / total_freq
        return ProbabilityDist(prob_dict)

    @staticmethod
    def _validate_freq_dist(freq_dict):
        """
        checks if each value of the freq dist is a positive integer
        """
        if not freq_dict:
            raise ValueError("frequency dict is empty")

        for symbol, freq in freq_dict.items():
            if not isinstance(freq, (int, np.integer)) or freq <= 0:
                raise ValueError(f"frequency of {symbol!r} must be a positive integer, got {freq}")


def test_frequencies():
    freqs = Frequencies({"A": 7, "B": 1, "C": 3})
    assert freqs.total_freq == 11
    assert freqs.cumulative_freq_dict == {"A": 0, "B": 7, "C": 8}
    assert freqs.frequency("C") == 3

    prob_dist = Frequencies({"A": 2, "B": 1, "C": 1}).get_prob_dist()
    assert prob_dist.prob_dict == {"A": 0.5, "B": 0.25, "C": 0.25}
    assert prob_dist.alphabet == ["A", "B", "C"]


def test_frequencies_validation():
    for freq_dict in [{"A": 0}, {"A": 1.5}, {"A": -2}, {}]:
        with pytest.raises(ValueError):
            Frequencies(freq_dict)
