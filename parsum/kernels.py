# Author      : Tyson Limato
# Date        : 2025-7-3
# File Name   : kernels.py
import numpy as np

# Word type shared by the generator, the kernels and the reducers.
# Must match the `int` used in PARSUM_SOURCE bit for bit (32-bit, signed).
WORD = np.int32

KERNEL_NAME = "parsum"

# The count and segment size travel to the CUDA kernel as `unsigned int`
MAX_KERNEL_SCALAR = 2**32 - 1

# One thread per segment. The accumulator is unsigned so that overflow wraps
# the same way numpy's int32 reductions do instead of being undefined.
PARSUM_SOURCE = r"""
extern "C" __global__
void parsum(const int* data,
            const unsigned int count,
            int* sums,
            const unsigned int elementsPerSum)
{
    const unsigned long long resultIndex =
        (unsigned long long)blockIdx.x * blockDim.x + threadIdx.x;
    const unsigned long long start = resultIndex * elementsPerSum;

    // surplus threads of the last group
    if (start >= count) {
        return;
    }

    unsigned long long end = start + elementsPerSum;
    if (end > count) {
        end = count;
    }

    unsigned int sum = 0;
    for (unsigned long long i = start; i < end; ++i) {
        sum += (unsigned int)data[i];
    }
    sums[resultIndex] = (int)sum;
}
"""


def segment_sum(data: np.ndarray, index: int, count: int, elements_per_sum: int):
    """
    Sum the elements of segment `index` in WORD arithmetic.

    Pure function of the input range, so calling it twice on the same
    segment always yields the same value.
    """
    start = index * elements_per_sum
    end = min(start + elements_per_sum, count)
    # int32 reductions wrap on overflow, no widening
    return WORD(np.add.reduce(data[start:end], dtype=WORD))


def parsum(thread_position: int, data: np.ndarray, count: int,
           sums: np.ndarray, elements_per_sum: int):
    """
    Host form of the segment reduction kernel, run once per grid position.

    Parameters:
    -----------
    thread_position : int
        Linear index of this instance in the grid (group * threads_per_group + thread).
    data : np.ndarray
        The whole dataset, read only.
    count : int
        Number of elements N in `data`.
    sums : np.ndarray
        Partial sums buffer of length ceil(N / S). Only slot `thread_position` is written.
    elements_per_sum : int
        Segment size S.
    """
    # start >= count is the same test as thread_position >= ceil(count / elements_per_sum)
    if thread_position * elements_per_sum >= count:
        return
    sums[thread_position] = segment_sum(data, thread_position, count, elements_per_sum)
