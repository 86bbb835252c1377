import numpy as np

from parsum.kernels import KERNEL_NAME, PARSUM_SOURCE, WORD, parsum, segment_sum
from parsum.partition import plan


def test_word_is_32_bit_signed():
    assert np.dtype(WORD).itemsize == 4
    assert np.issubdtype(WORD, np.signedinteger)


def test_cuda_source_exports_the_kernel_by_name():
    assert 'extern "C"' in PARSUM_SOURCE
    assert f"void {KERNEL_NAME}(" in PARSUM_SOURCE


def test_segment_sums_of_scenario(five_values):
    sums = [segment_sum(five_values, i, 5, 2) for i in range(plan(5, 2))]
    assert sums == [3, 7, 5]


def test_segment_sum_is_idempotent(random_data):
    first = segment_sum(random_data, 7, random_data.size, 1000)
    second = segment_sum(random_data, 7, random_data.size, 1000)
    assert first == second
    assert first == int(random_data[7000:8000].sum())


def test_segment_sum_keeps_word_type():
    data = np.array([np.iinfo(WORD).max, 1], dtype=WORD)
    total = segment_sum(data, 0, 2, 2)
    assert total.dtype == WORD
    assert total == np.iinfo(WORD).min


def test_kernel_writes_only_its_own_slot(five_values):
    sums = np.full(3, -1, dtype=WORD)
    parsum(1, five_values, 5, sums, 2)
    assert sums.tolist() == [-1, 7, -1]


def test_kernel_past_the_last_segment_does_nothing(five_values):
    sums = np.full(3, -1, dtype=WORD)
    for position in range(3, 10):
        parsum(position, five_values, 5, sums, 2)
    assert sums.tolist() == [-1, -1, -1]


def test_single_element():
    data = np.array([42], dtype=WORD)
    sums = np.zeros(1, dtype=WORD)
    parsum(0, data, 1, sums, 1)
    assert sums.tolist() == [42]
