import numpy as np
import pytest

from parsum.errors import InvalidInput
from parsum.kernels import WORD
from parsum.reducers import aggregate, reduce_all, wrap_word

INT_MAX = int(np.iinfo(WORD).max)
INT_MIN = int(np.iinfo(WORD).min)


def test_aggregate_scenario():
    total = aggregate([3, 7, 5])
    assert total == 15
    assert total.dtype == WORD


@pytest.mark.parametrize("method", ["numpy", "loop"])
def test_reduce_all_scenario(five_values, method):
    assert reduce_all(five_values, method=method) == 15


@pytest.mark.parametrize("method", ["numpy", "loop"])
def test_single_element(method):
    data = np.array([-9], dtype=WORD)
    assert aggregate(data) == reduce_all(data, method=method) == -9


def test_both_baseline_methods_agree(random_data):
    assert reduce_all(random_data, "numpy") == reduce_all(random_data, "loop")
    assert int(reduce_all(random_data)) == int(random_data.sum())


def test_aggregate_of_segment_sums_equals_baseline(random_data):
    partials = [int(random_data[i:i + 777].sum()) for i in range(0, random_data.size, 777)]
    assert aggregate(partials) == reduce_all(random_data)


def test_wraparound_is_identical_on_both_paths():
    data = np.full(3, INT_MAX, dtype=WORD)
    expected = wrap_word(3 * INT_MAX)
    assert reduce_all(data, "numpy") == expected
    assert reduce_all(data, "loop") == expected
    assert aggregate(data) == expected


def test_aggregate_wraps():
    assert aggregate([INT_MAX, 1]) == INT_MIN


def test_wrap_word():
    assert wrap_word(2**31) == INT_MIN
    assert wrap_word(INT_MIN - 1) == INT_MAX
    assert wrap_word(12345) == 12345


def test_unknown_method(five_values):
    with pytest.raises(InvalidInput):
        reduce_all(five_values, method="simd")


def test_empty_dataset():
    with pytest.raises(InvalidInput):
        reduce_all(np.array([], dtype=WORD))
