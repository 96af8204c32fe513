"""errors raised by the arithmetic interval coder

All errors are fatal for the operation that raises them: a failing Model
construction produces no Model, and a failing encode returns no interval.
Decoding never raises, an interval which matches no symbol path simply decodes
to a shorter (possibly empty) sequence.
"""


class ArithmeticCodingError(Exception):
    """base class for all errors raised by sac"""


class ModelConstructionError(ArithmeticCodingError, ValueError):
    """the (symbol, probability) input cannot be turned into a Model"""


class CumulativeOverflowError(ModelConstructionError, OverflowError):
    """the cumulative probability became non-finite (overflow or NaN)"""

    def __init__(self, symbol, cumulative):
        self.symbol = symbol
        self.cumulative = cumulative
        super().__init__(f"cumulative probability overflown at symbol {symbol!r}: {cumulative}")


class RangeExceededError(ModelConstructionError):
    """the cumulative probability exceeded 1.0"""

    def __init__(self, symbol, cumulative):
        self.symbol = symbol
        self.cumulative = cumulative
        super().__init__(f"cumulative probability exceeds 1.0 at symbol {symbol!r}: {cumulative}")


class InvalidProbabilityError(ModelConstructionError):
    """a probability was negative or not a real number"""

    def __init__(self, symbol, probability):
        self.symbol = symbol
        self.probability = probability
        super().__init__(f"probability of symbol {symbol!r} is negative or not a real number: {probability!r}")


class UnknownSymbolError(ArithmeticCodingError, LookupError):
    """the symbol is not part of the Model alphabet"""

    def __init__(self, symbol):
        self.symbol = symbol
        super().__init__(f"no symbol {symbol!r} found in the model alphabet")


def test_error_hierarchy():
    """builtin exception types can be used to catch the sac errors"""
    assert issubclass(CumulativeOverflowError, OverflowError)
    assert issubclass(RangeExceededError, ValueError)
    assert issubclass(InvalidProbabilityError, ModelConstructionError)
    assert issubclass(UnknownSymbolError, LookupError)

    err = UnknownSymbolError("z")
    assert err.symbol == "z"
    assert str(err) == "no symbol 'z' found in the model alphabet"
