import numpy as np


def is_floating_dtype(dtype) -> bool:
    """returns True if dtype is a numpy floating point type (np.float32, np.float64, ...)"""
    try:
        return np.issubdtype(np.dtype(dtype), np.floating)
    except TypeError:
        return False


def test_is_floating_dtype():
    assert is_floating_dtype(np.float32)
    assert is_floating_dtype(np.float64)
    assert is_floating_dtype(float)
    assert not is_floating_dtype(np.int32)
    assert not is_floating_dtype("not-a-dtype")
