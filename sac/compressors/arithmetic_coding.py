"""Arithmetic coding with a static model, on real-valued intervals

The encoder maps a sequence of symbols to a sub-interval [low, high) of [0, 1). Starting from [0, 1),
every symbol shrinks the current interval to the part corresponding to the symbol's range in the Model:

    rng = high - low
    high = low + rng * range.end
    low = low + rng * range.start

For the model a: [0, 0.5), b: [0.5, 0.75), c: [0.75, 0.875), encoding "ab" goes
[0, 1) -> [0, 0.5) -> [0.25, 0.375).

The decoder re-derives the same sequence of intervals: at every step it looks for the (first) symbol whose
shrunk interval fully contains the encoded interval, and stops when there is none. As the decoder uses exactly
the same arithmetic as the encoder, it recomputes the encoder's intervals bit-for-bit.

NOTE: This is the textbook version of arithmetic coding. The interval is kept as a pair of floats and is never
renormalized, so long inputs will run out of floating point precision. See the integer arithmetic coders in SCL
for a finite precision version with bit output:
https://github.com/kedartatwawadi/stanford_compression_library
Some good references:
- Witten, Neal, Cleary: https://web.stanford.edu/class/ee398a/handouts/papers/WittenACM87ArithmCoding.pdf
- https://youtu.be/ouYV3rBtrTI
"""

import logging
from typing import Any, Iterable, List, Tuple
import numpy as np
import pytest
from sac.core.data_block import DataBlock
from sac.core.errors import UnknownSymbolError
from sac.core.model import Model, ModelParams, Range, SymbolEntry
from sac.core.prob_dist import Frequencies, ProbabilityDist
from sac.utils.test_utils import get_random_data_block, try_lossless_interval_coding

_LOGGER = logging.getLogger(__name__)


def shrink_range(entry_range: Range, low, high) -> Tuple[Any, Any]:
    """shrinks the interval (low, high) to the part corresponding to entry_range

    Args:
        entry_range (Range): range of the symbol within [0, 1)
        low, high: current interval

    Returns:
        Tuple: (low, high) after shrinking
    """
    rng = high - low
    high = low + rng * entry_range.end
    low = low + rng * entry_range.start
    return low, high


def encode(model: Model, symbols: Iterable) -> Tuple[float, float]:
    """encodes the symbols to an interval (low, high) of [0, 1)

    Args:
        model (Model): the static model
        symbols (Iterable): symbols to encode

    Raises:
        UnknownSymbolError: if a symbol is not part of the model alphabet. No interval is returned.

    Returns:
        Tuple[float, float]: (low, high). (0.0, 1.0) for empty input
    """
    low, high = model.start, model.end

    num_symbols = 0
    for s in symbols:
        entry = model.find_entry(s)
        low, high = shrink_range(entry.range, low, high)
        num_symbols += 1

    _LOGGER.debug("encoded %d symbols to [%s, %s)", num_symbols, low, high)
    return float(low), float(high)


def decode(model: Model, low: float, high: float, num_symbols: int = None) -> List:
    """decodes the symbols corresponding to the interval (low, high)

    Decoding stops when no symbol range contains (low, high), or after num_symbols symbols if it is given.
    An interval which does not come from encode (e.g. one in the dead zone of the model) decodes to a
    shorter, possibly empty, list; this is not an error.

    Args:
        model (Model): the same model used for encoding
        low (float), high (float): the encoded interval
        num_symbols (int, optional): number of symbols to decode. Defaults to None.

    Returns:
        List: the decoded symbols
    """
    target_low, target_high = model.dtype(low), model.dtype(high)
    decode_low, decode_high = model.start, model.end

    decoded = []
    while num_symbols is None or len(decoded) < num_symbols:
        for entry in model:
            a, b = shrink_range(entry.range, decode_low, decode_high)
            if target_low >= a and target_high <= b:
                break
        else:
            # no symbol contains the interval -> done
            break

        # a match which does not shrink the interval (probability 1.0, or precision exhausted)
        # would match again forever
        if num_symbols is None and a <= decode_low and b >= decode_high:
            _LOGGER.warning(
                "interval [%s, %s) stopped shrinking after %d symbols, stopping decode", a, b, len(decoded)
            )
            break

        decoded.append(entry.symbol)
        decode_low, decode_high = a, b

    _LOGGER.debug("decoded %d symbols from [%s, %s)", len(decoded), low, high)
    return decoded


def get_codelength(low: float, high: float) -> int:
    """number of bits needed to identify a point within [low, high)

    The interval contains a binary fraction with ceil(-log2(high - low)) + 1 bits, e.g. the truncated mid-point

    Raises:
        ValueError: for an empty interval
    """
    if not high > low:
        raise ValueError(f"interval [{low}, {high}) is empty")
    return int(np.ceil(-np.log2(high - low))) + 1


class IntervalEncoder:
    """encodes a DataBlock to an interval using a static model"""

    def __init__(self, model: Model):
        self.model = model

    def encode_block(self, data_block: DataBlock) -> Tuple[float, float]:
        return encode(self.model, data_block.data_list)


class IntervalDecoder:
    """decodes an interval back to a DataBlock using a static model"""

    def __init__(self, model: Model):
        self.model = model

    def decode_block(self, interval: Tuple[float, float], num_symbols: int = None) -> DataBlock:
        low, high = interval
        return DataBlock(decode(self.model, low, high, num_symbols=num_symbols))


############################## TESTS ####################################

# (symbols, encoded interval) for the model a: 0.5, b: 0.25, c: 0.125
REFERENCE_INTERVALS = [
    (["a"], (0.0, 0.5)),
    (["b"], (0.5, 0.75)),
    (["c"], (0.75, 0.875)),
    (["a", "a"], (0.0, 0.25)),
    (["a", "b"], (0.25, 0.375)),
    (["b", "a"], (0.5, 0.625)),
    (["c", "b"], (0.8125, 0.84375)),
    (["a", "b", "c"], (0.34375, 0.359375)),
    (["c", "b", "a"], (0.8125, 0.828125)),
]


def _get_abc_model(dtype=np.float64):
    return Model([("a", 0.5), ("b", 0.25), ("c", 0.125)], ModelParams(DTYPE=dtype))


@pytest.mark.parametrize("dtype", [np.float32, np.float64])
def test_encode_reference(dtype):
    model = _get_abc_model(dtype)
    for symbols, interval in REFERENCE_INTERVALS:
        assert encode(model, symbols) == interval


@pytest.mark.parametrize("dtype", [np.float32, np.float64])
def test_decode_reference(dtype):
    model = _get_abc_model(dtype)
    for symbols, (low, high) in REFERENCE_INTERVALS:
        assert decode(model, low, high) == symbols


def test_encode_edge_cases():
    model = _get_abc_model()

    # empty input returns the model bounds
    low, high = encode(model, [])
    assert (low, high) == (0.0, 1.0)
    assert type(low) is float and type(high) is float

    # a single symbol returns its range
    for entry in model:
        assert encode(model, [entry.symbol]) == (entry.range.start, entry.range.end)

    # symbols can be any iterable
    assert encode(model, iter("ab")) == (0.25, 0.375)


def test_encode_unknown_symbol():
    model = _get_abc_model()
    with pytest.raises(UnknownSymbolError) as excinfo:
        encode(model, ["a", "b", "z", "c"])
    assert excinfo.value.symbol == "z"

    with pytest.raises(LookupError):
        IntervalEncoder(model).encode_block(DataBlock(["d"]))


def test_decode_no_match():
    model = _get_abc_model()

    # the dead zone [0.875, 1.0) matches no symbol
    assert decode(model, 0.9, 0.95) == []

    # the full interval is not contained in any single symbol range
    assert decode(model, 0.0, 1.0) == []

    # the interval straddles a and b, so decoding stops early
    assert decode(model, 0.25, 0.625) == []
    assert decode(model, 0.5, 0.625 + 0.0625) == ["b"]


def test_decode_num_symbols():
    model = _get_abc_model()
    assert decode(model, 0.34375, 0.359375, num_symbols=2) == ["a", "b"]
    assert decode(model, 0.34375, 0.359375, num_symbols=0) == []

    # asking for more symbols than are contained stops at the last match
    assert decode(model, 0.34375, 0.359375, num_symbols=5) == ["a", "b", "c"]


def test_decode_certain_symbol(caplog):
    """a symbol of probability 1.0 never shrinks the interval"""
    model = Model([("x", 1.0)])
    assert encode(model, ["x", "x", "x"]) == (0.0, 1.0)

    # the number of symbols has to be transmitted separately
    assert decode(model, 0.0, 1.0, num_symbols=3) == ["x", "x", "x"]

    with caplog.at_level(logging.WARNING):
        assert decode(model, 0.0, 1.0) == []
    assert "stopped shrinking" in caplog.text


def test_decode_stops_on_widening_match():
    """a matching range which rounds to slightly more than the current interval is not decoded"""
    one_ulp_above_one = np.nextafter(np.float64(1.0), np.float64(2.0))
    entry = SymbolEntry(symbol="x", range=Range(np.float64(0.0), one_ulp_above_one), probability=np.float64(1.0))
    model = Model._from_entries([entry], ModelParams())
    assert decode(model, 0.0, 1.0) == []


def test_decode_exhausted_precision():
    """once the float32 interval collapses, decoding still terminates"""
    model = _get_abc_model(np.float32)
    symbols = ["b", "c"] * 30
    low, high = encode(model, symbols)
    decoded = decode(model, low, high)
    assert len(decoded) <= len(symbols)
    assert decoded[:4] == symbols[:4]


def test_zero_probability_symbol():
    model = Model([("a", 0.5), ("z", 0.0), ("b", 0.5)])
    low, high = encode(model, ["a", "b", "a"])
    assert decode(model, low, high) == ["a", "b", "a"]
    assert "z" not in decode(model, low, high)


def test_get_codelength():
    assert get_codelength(0.0, 1.0) == 1
    assert get_codelength(0.25, 0.375) == 4
    assert get_codelength(*encode(_get_abc_model(), ["a", "b", "c"])) == 7
    with pytest.raises(ValueError):
        get_codelength(0.5, 0.5)


def test_interval_coding_lossless():
    """round trip random data through the IntervalEncoder, IntervalDecoder

    NOTE: the blocks are kept short, as the interval is not renormalized and runs out of
    floating point precision for long inputs
    """
    DATA_SIZE = 10
    distributions = [
        ProbabilityDist({"A": 0.5, "B": 0.5}),
        ProbabilityDist({"a": 0.5, "b": 0.25, "c": 0.125}),
        ProbabilityDist({"A": 0.25, "B": 0.25, "C": 0.375, "D": 0.125}),
        ProbabilityDist({"A": 0.1, "B": 0.2, "C": 0.3}),
    ]
    for prob_dist in distributions:
        model = Model.from_prob_dist(prob_dist)
        encoder = IntervalEncoder(model)
        decoder = IntervalDecoder(model)

        for seed in range(10):
            data_block = get_random_data_block(prob_dist, DATA_SIZE, seed=seed)
            for send_num_symbols in [False, True]:
                is_lossless, (low, high) = try_lossless_interval_coding(
                    data_block, encoder, decoder, send_num_symbols=send_num_symbols
                )
                assert is_lossless, f"Lossless coding failed for {data_block}"

            # the interval width is the probability of the block (up to rounding of low, high)
            expected_width = np.prod([prob_dist.probability(s) for s in data_block.data_list])
            np.testing.assert_allclose(high - low, expected_width, rtol=1e-4)


def test_interval_coding_lossless_float32():
    model = _get_abc_model(np.float32)
    prob_dist = ProbabilityDist({"a": 0.5, "b": 0.25, "c": 0.125})
    for seed in range(10):
        data_block = get_random_data_block(prob_dist, 6, seed=seed)
        low, high = encode(model, data_block.data_list)
        assert decode(model, low, high) == data_block.data_list


def test_interval_coding_lossless_from_counts():
    """models built from integer counts, with the last range ending exactly at 1.0

    NOTE: blocks of 8 symbols keep the counts (and so all the interval arithmetic) dyadic
    """
    freqs = Frequencies({"A": 4, "B": 2, "C": 1, "D": 1})
    prob_dist = freqs.get_prob_dist()
    model = Model.from_frequencies(freqs)
    assert model.cumulative_total == 1.0

    for seed in range(10):
        data_block = get_random_data_block(prob_dist, 8, seed=seed)
        for block_model in [model, Model.from_data_block(data_block)]:
            is_lossless, _ = try_lossless_interval_coding(
                data_block, IntervalEncoder(block_model), IntervalDecoder(block_model), send_num_symbols=True
            )
            assert is_lossless, f"Lossless coding failed for {data_block}"
