# Author      : Tyson Limato
# Date        : 2025-7-4
# File Name   : reducers.py
import numpy as np

from parsum.errors import InvalidInput
from parsum.kernels import WORD

BASELINE_METHODS = ("numpy", "loop")

_WORD_BITS = np.iinfo(WORD).bits
_WORD_MODULUS = 1 << _WORD_BITS
_WORD_MIN = int(np.iinfo(WORD).min)


def wrap_word(value: int) -> int:
    """Wrap a Python int into WORD's two's-complement range."""
    return (value - _WORD_MIN) % _WORD_MODULUS + _WORD_MIN


def aggregate(partials) -> np.int32:
    """
    Fold the partial sums into the final parallel-path total.

    Strictly left to right, in WORD arithmetic. The caller must only hand
    over `partials` once the device reported completion of every instance.

    Parameters:
    -----------
    partials : sequence of int
        One partial sum per segment, in segment order.

    Returns:
    --------
    np.int32
        The total.
    """
    total = 0
    for partial in np.asarray(partials, dtype=WORD).tolist():
        total = wrap_word(total + partial)
    return WORD(total)


def reduce_all(data, method: str = "numpy") -> np.int32:
    """
    Sum the whole dataset on the host without any partitioning.

    This is the reference for both correctness and timing, so it uses the
    same WORD type as the parallel path and shares nothing with it.

    Parameters:
    -----------
    data : np.ndarray
        The dataset.
    method : str
        "numpy" folds with a single int32 `np.add.reduce`; "loop" walks the
        elements one by one in Python, wrapping after every addition
        (default: "numpy").

    Returns:
    --------
    np.int32
        The total.
    """
    if method not in BASELINE_METHODS:
        raise InvalidInput(f"unknown baseline method {method!r}, choose from {list(BASELINE_METHODS)}")
    data = np.asarray(data)
    if data.size == 0:
        raise InvalidInput("dataset is empty, nothing to reduce")

    if method == "numpy":
        return WORD(np.add.reduce(data, dtype=WORD))

    total = 0
    for elem in data.astype(WORD, copy=False).tolist():
        total = wrap_word(total + elem)
    return WORD(total)
