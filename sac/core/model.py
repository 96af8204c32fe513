"""Static probability-interval model

A Model assigns every symbol of the alphabet a half-open sub-interval [start, end) of [0, 1), of width
equal to the symbol probability. The ranges are laid out contiguously, in the order in which the
(symbol, probability) pairs were supplied:

    [("a", 0.5), ("b", 0.25), ("c", 0.125)] -> a: [0, 0.5), b: [0.5, 0.75), c: [0.75, 0.875)

The probabilities are not normalized. If they sum to less than 1, the top of the unit interval
(here [0.875, 1.0)) is a "dead zone" which matches no symbol.

The Model is static: it is built once and cannot be changed afterwards (no adaptive coding). The encode/decode
routines in sac.compressors.arithmetic_coding only read it, so a single Model can be shared freely.
"""

import logging
import numbers
from dataclasses import dataclass, FrozenInstanceError
from typing import Any, Iterable, NamedTuple, Tuple
import numpy as np
import pytest
from sac.core.errors import (
    CumulativeOverflowError,
    InvalidProbabilityError,
    RangeExceededError,
    UnknownSymbolError,
)
from sac.core.data_block import DataBlock
from sac.core.prob_dist import Frequencies, ProbabilityDist
from sac.utils.misc_utils import is_floating_dtype

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelParams:
    """Model parameters"""

    # floating point type used for the interval arithmetic.
    # np.float32 reproduces the single precision behaviour of the classic reference coder
    DTYPE: Any = np.float64

    def __post_init__(self):
        if not is_floating_dtype(self.DTYPE):
            raise ValueError(f"DTYPE must be a floating point type, got {self.DTYPE!r}")
        # normalize python float etc. to the numpy scalar type
        object.__setattr__(self, "DTYPE", np.dtype(self.DTYPE).type)

        # the overall interval bounds
        object.__setattr__(self, "START", self.DTYPE(0.0))
        object.__setattr__(self, "END", self.DTYPE(1.0))


@dataclass(frozen=True)
class Range:
    """half-open interval [start, end)"""

    start: Any
    end: Any

    @property
    def width(self):
        return self.end - self.start


@dataclass(frozen=True)
class SymbolEntry:
    """an alphabet member: the symbol, its range in [0, 1) and its probability"""

    symbol: Any
    range: Range
    probability: Any


class SymbolProbability(NamedTuple):
    symbol: Any
    probability: float


class Model:
    """ordered, immutable sequence of SymbolEntry's

    Args:
        probabilities (Iterable): (symbol, probability) pairs, e.g. SymbolProbability's. The order
            determines the layout of the ranges
        params (ModelParams, optional): arithmetic params. Defaults to ModelParams()

    Raises:
        InvalidProbabilityError: a probability is negative or not a real number
        CumulativeOverflowError: the cumulative probability became inf/NaN
        RangeExceededError: the cumulative probability exceeded 1.0
    """

    def __init__(self, probabilities: Iterable[Tuple[Any, float]], params: ModelParams = None):
        self._params = params if params is not None else ModelParams()
        self._entries = self._build_entries(probabilities, self._params.DTYPE)
        _LOGGER.debug(
            "built model with %d symbols, cumulative probability %s", len(self._entries), self.cumulative_total
        )

    @staticmethod
    def _build_entries(probabilities, dtype) -> Tuple[SymbolEntry, ...]:
        cumulative = dtype(0.0)
        entries = []
        for symbol, probability in probabilities:
            if not isinstance(probability, numbers.Real):
                raise InvalidProbabilityError(symbol, probability)

            with np.errstate(over="ignore", invalid="ignore"):
                try:
                    probability = dtype(probability)
                except OverflowError:
                    # python ints too large for a float
                    raise CumulativeOverflowError(symbol, probability) from None
                end = cumulative + probability

            # NaN is not negative, it is caught by the finite check below
            if probability < 0:
                raise InvalidProbabilityError(symbol, probability)

            # fails for inf and NaN
            if not np.isfinite(end):
                raise CumulativeOverflowError(symbol, end)

            entries.append(SymbolEntry(symbol=symbol, range=Range(start=cumulative, end=end), probability=probability))
            cumulative = end

            if cumulative > 1.0:
                raise RangeExceededError(symbol, cumulative)

        return tuple(entries)

    @classmethod
    def from_prob_dist(cls, prob_dist: ProbabilityDist, params: ModelParams = None):
        """builds the model from a ProbabilityDist, keeping the dict order"""
        return cls(prob_dist.items(), params)

    @classmethod
    def from_frequencies(cls, freqs: Frequencies, params: ModelParams = None):
        """builds the model from integer frequencies, keeping the dict order

        The ranges are computed from the integer cumulative frequencies, [cum/total, (cum + freq)/total),
        so the ranges stay contiguous and the last one ends exactly at 1.0. Summing the normalized
        probabilities instead can overshoot 1.0 due to rounding.
        """
        params = params if params is not None else ModelParams()
        dtype = params.DTYPE
        total_freq = freqs.total_freq

        entries = []
        for symbol, cum_freq in freqs.cumulative_freq_dict.items():
            freq = freqs.frequency(symbol)
            entry_range = Range(start=dtype(cum_freq / total_freq), end=dtype((cum_freq + freq) / total_freq))
            entries.append(SymbolEntry(symbol=symbol, range=entry_range, probability=dtype(freq / total_freq)))

        return cls._from_entries(entries, params)

    @classmethod
    def from_data_block(cls, data_block: DataBlock, params: ModelParams = None):
        """builds the model from the symbol counts of data_block, in order of first occurrence"""
        return cls.from_frequencies(Frequencies(data_block.get_counts()), params)

    @classmethod
    def _from_entries(cls, entries, params: ModelParams):
        model = cls.__new__(cls)
        model._params = params
        model._entries = tuple(entries)
        _LOGGER.debug("built model with %d symbols from frequencies", len(model._entries))
        return model

    def __repr__(self):
        pairs = [(e.symbol, float(e.probability)) for e in self._entries]
        return f"Model({pairs!r})"

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __contains__(self, symbol):
        return any(entry.symbol == symbol for entry in self._entries)

    @property
    def params(self) -> ModelParams:
        return self._params

    @property
    def dtype(self):
        return self._params.DTYPE

    @property
    def start(self):
        return self._params.START

    @property
    def end(self):
        return self._params.END

    @property
    def entries(self) -> Tuple[SymbolEntry, ...]:
        return self._entries

    @property
    def size(self):
        return len(self._entries)

    @property
    def alphabet(self):
        return [entry.symbol for entry in self._entries]

    @property
    def cumulative_total(self):
        """sum of all the probabilities, i.e. the end of the last range"""
        if not self._entries:
            return self.start
        return self._entries[-1].range.end

    @property
    def dead_zone(self):
        """width of [cumulative_total, 1.0), the part of the unit interval matching no symbol"""
        return self.end - self.cumulative_total

    @property
    def entropy(self) -> float:
        """entropy (in bits) of the symbol probabilities"""
        entropy = 0.0
        for entry in self._entries:
            p = float(entry.probability)
            if p > 0:
                entropy += -p * np.log2(p)
        return entropy

    def find_entry(self, symbol) -> SymbolEntry:
        """returns the first entry (in model order) whose symbol equals the given symbol

        Raises:
            UnknownSymbolError: if the symbol is not in the alphabet
        """
        for entry in self._entries:
            if entry.symbol == symbol:
                return entry
        raise UnknownSymbolError(symbol)


############################## TESTS ####################################


def _get_abc_model(params=None):
    probabilities = [
        SymbolProbability("a", 0.5),
        SymbolProbability("b", 0.25),
        SymbolProbability("c", 0.125),
    ]
    return Model(probabilities, params)


def test_model_ranges():
    """ranges are laid out contiguously in input order"""
    for dtype in [np.float32, np.float64]:
        model = _get_abc_model(ModelParams(DTYPE=dtype))

        assert model.alphabet == ["a", "b", "c"]
        assert [(e.range.start, e.range.end) for e in model] == [(0.0, 0.5), (0.5, 0.75), (0.75, 0.875)]
        assert [e.probability for e in model.entries] == [0.5, 0.25, 0.125]
        assert model.entries[1].range.width == 0.25
        assert (model.start, model.end) == (0.0, 1.0)
        assert model.cumulative_total == 0.875
        assert model.dead_zone == 0.125
        assert all(isinstance(e.range.end, dtype) for e in model)


def test_model_entropy():
    model = Model([("H", 0.5), ("T", 0.5)])
    assert model.entropy == 1.0

    # partial distribution: 0.5*1 + 0.25*2 + 0.125*3
    assert _get_abc_model().entropy == 1.375


def test_model_lookup():
    model = Model([("a", 0.25), ("b", 0.25), ("a", 0.5)])

    # first match wins
    assert model.find_entry("a").range == Range(0.0, 0.25)
    assert "b" in model
    assert "z" not in model
    with pytest.raises(UnknownSymbolError):
        model.find_entry("z")


def test_model_zero_probability():
    model = Model([("a", 0.5), ("z", 0.0), ("b", 0.5)])
    assert model.find_entry("z").range == Range(0.5, 0.5)
    assert model.find_entry("z").range.width == 0.0
    assert model.find_entry("b").range == Range(0.5, 1.0)
    assert model.dead_zone == 0.0


def test_model_validation():
    with pytest.raises(RangeExceededError):
        Model([("a", 0.5), ("b", 0.25), ("c", 0.3)])

    # never clamped, even by a tiny bit
    with pytest.raises(RangeExceededError):
        Model([("a", 1.0), ("b", 1e-9)])

    with pytest.raises(OverflowError):
        Model([("a", 0.5), ("b", float("inf"))])

    with pytest.raises(CumulativeOverflowError):
        Model([("a", float("nan"))])

    # 1e39 is not representable as float32
    with pytest.raises(CumulativeOverflowError):
        Model([("a", 1e39)], ModelParams(DTYPE=np.float32))

    with pytest.raises(InvalidProbabilityError):
        Model([("a", 0.5), ("b", -0.25)])

    # probabilities must be real numbers, strings are not converted
    with pytest.raises(InvalidProbabilityError):
        Model([("a", "0.5")])
    with pytest.raises(InvalidProbabilityError):
        Model([("a", None)])

    # python ints too large for a float
    with pytest.raises(CumulativeOverflowError) as excinfo:
        Model([("a", 0.5), ("b", 10**400)])
    assert excinfo.value.symbol == "b"

    with pytest.raises(ValueError):
        ModelParams(DTYPE=np.int64)


def test_model_immutable():
    model = _get_abc_model()
    with pytest.raises(AttributeError):
        model.entries = ()
    with pytest.raises(FrozenInstanceError):
        model.entries[0].probability = 0.75
    with pytest.raises(FrozenInstanceError):
        model.entries[0].range.end = 0.75

    # the params (bounds, dtype) cannot be changed behind the model's back either
    params = ModelParams(DTYPE=np.float32)
    model = _get_abc_model(params)
    with pytest.raises(FrozenInstanceError):
        params.START = params.DTYPE(0.5)
    with pytest.raises(FrozenInstanceError):
        model.params.DTYPE = np.float16
    assert (model.start, model.end) == (0.0, 1.0)
    assert model.dtype is np.float32


def test_model_from_distributions():
    prob_dist = ProbabilityDist({"A": 0.5, "B": 0.25, "C": 0.25})
    model = Model.from_prob_dist(prob_dist)
    assert model.alphabet == ["A", "B", "C"]
    assert model.find_entry("C").range == Range(0.75, 1.0)

    freqs = Frequencies({"x": 1, "y": 3})
    model = Model.from_frequencies(freqs, ModelParams(DTYPE=np.float32))
    assert model.find_entry("y").range == Range(0.25, 1.0)
    assert model.dead_zone == 0.0

    model = Model.from_data_block(DataBlock(["b", "a", "b", "b"]))
    assert model.alphabet == ["b", "a"]
    assert model.find_entry("a").range == Range(0.75, 1.0)
    assert model.find_entry("b").probability == 0.75


def test_model_from_random_frequencies():
    """the ranges built from integer frequencies are contiguous and end exactly at 1.0

    NOTE: summing the normalized probabilities of e.g. {0: 38, 1: 45, 2: 21, 3: 2, 4: 36, 5: 26, 6: 43, 7: 23}
    overshoots 1.0
    """
    rng = np.random.default_rng(0)
    freq_dicts = [{0: 38, 1: 45, 2: 21, 3: 2, 4: 36, 5: 26, 6: 43, 7: 23}]
    for _ in range(500):
        size = int(rng.integers(2, 17))
        freq_dicts.append({i: int(f) for i, f in enumerate(rng.integers(1, 51, size=size))})

    for dtype in [np.float32, np.float64]:
        for freq_dict in freq_dicts:
            model = Model.from_frequencies(Frequencies(freq_dict), ModelParams(DTYPE=dtype))

            assert model.alphabet == list(freq_dict)
            assert model.entries[0].range.start == 0.0
            assert model.cumulative_total == 1.0
            assert model.dead_zone == 0.0
            for prev_entry, entry in zip(model.entries[:-1], model.entries[1:]):
                assert prev_entry.range.end == entry.range.start
                assert entry.range.end > entry.range.start


def test_empty_model():
    model = Model([])
    assert len(model) == 0
    assert model.cumulative_total == 0.0
    assert model.dead_zone == 1.0
