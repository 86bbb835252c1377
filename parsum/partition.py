# Author      : Tyson Limato
# Date        : 2025-7-2
# File Name   : partition.py
import operator

from parsum.errors import InvalidInput


def check_positive(value, name: str) -> int:
    """Return `value` as a plain int, or raise InvalidInput if it is not a positive integer."""
    # bool is an int subclass but never a valid count
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be an integer, got {value!r}")
    try:
        value = operator.index(value)
    except TypeError:
        raise InvalidInput(f"{name} must be an integer, got {value!r}") from None
    if value <= 0:
        raise InvalidInput(f"{name} must be positive, got {value}")
    return value


def plan(count, elements_per_sum) -> int:
    """
    Compute how many segments (and therefore partial sums) a dataset splits into.

    Parameters:
    -----------
    count : int
        Total number of elements N in the dataset.
    elements_per_sum : int
        Segment size S, the number of elements one kernel instance reduces.
        May be larger than `count`, in which case a single short segment is used.

    Returns:
    --------
    int
        R = ceil(N / S), the number of segments.
    """
    count = check_positive(count, "count")
    elements_per_sum = check_positive(elements_per_sum, "elements_per_sum")
    return (count + elements_per_sum - 1) // elements_per_sum


def segment_range(index, count, elements_per_sum) -> tuple:
    """Half-open element range [start, end) covered by segment `index`."""
    results_count = plan(count, elements_per_sum)
    try:
        index = operator.index(index)
    except TypeError:
        raise InvalidInput(f"segment index must be an integer, got {index!r}") from None
    if not 0 <= index < results_count:
        raise InvalidInput(f"segment index {index} outside [0, {results_count})")
    start = index * int(elements_per_sum)
    end = min(start + int(elements_per_sum), int(count))
    return start, end


def segment_lengths(count, elements_per_sum) -> list:
    """Lengths of every segment, in dataset order. Only the last one can be short."""
    results_count = plan(count, elements_per_sum)
    lengths = [int(elements_per_sum)] * results_count
    # last segment holds whatever is left over
    lengths[-1] = int(count) - int(elements_per_sum) * (results_count - 1)
    return lengths
