import numpy as np
import pytest

from parsum.errors import InvalidInput
from parsum.example_data_generator import check_high, generate_dataset
from parsum.kernels import WORD


def test_dataset_shape_and_range():
    data = generate_dataset(10_000, seed=3, high=100)
    assert data.dtype == WORD
    assert data.shape == (10_000,)
    assert data.min() >= 0
    assert data.max() < 100


def test_seed_is_reproducible():
    assert np.array_equal(generate_dataset(500, seed=9), generate_dataset(500, seed=9))


@pytest.mark.parametrize("count, high", [(0, 100), (-1, 100), (10, 0), (10, 2**40)])
def test_rejects_bad_arguments(count, high):
    with pytest.raises(InvalidInput):
        generate_dataset(count, high=high)


def test_check_high():
    assert check_high(100) == 100
    assert check_high(np.iinfo(WORD).max) == np.iinfo(WORD).max


@pytest.mark.parametrize("high", [0, -3, 2**31, 1.5, None])
def test_check_high_rejects(high):
    with pytest.raises(InvalidInput):
        check_high(high)
