# Author      : Tyson Limato
# Date        : 2025-7-2
# File Name   : example_data_generator.py
import numpy as np

from parsum.errors import InvalidInput
from parsum.kernels import WORD
from parsum.partition import check_positive

COUNT = 10_000_000
HIGH = 100


def check_high(high) -> int:
    """Validate the exclusive upper bound of generated values."""
    high = check_positive(high, "high")
    if high > np.iinfo(WORD).max:
        raise InvalidInput(f"high {high} does not fit in {np.dtype(WORD)}")
    return high


def generate_dataset(count: int = COUNT, seed: int = None, high: int = HIGH) -> np.ndarray:
    """
    Generate the random dataset both reductions sum.

    Values are drawn uniformly from [0, high). With the defaults the total
    stays far below the int32 limit, so both paths must print the same number.
    """
    count = check_positive(count, "count")
    high = check_high(high)
    rng = np.random.default_rng(seed)
    return rng.integers(0, high, size=count, dtype=WORD)


# Run the function
if __name__ == "__main__":
    data = generate_dataset()
    print(f"Dataset with {data.size} values generated, first values: {data[:10].tolist()}")
