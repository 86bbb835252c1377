# Author      : Tyson Limato
# Date        : 2025-7-6
# File Name   : pipeline.py
import dataclasses
import sys

import numpy as np

from parsum.errors import ReductionMismatch
from parsum.partition import check_positive, plan
from parsum.reducers import aggregate, reduce_all
from parsum.sizer import DispatchShape, size_dispatch
from parsum.timing import Stopwatch

ELEMENTS_PER_SUM = 10_000


@dataclasses.dataclass
class ParallelResult:
    total: np.int32
    partials: np.ndarray
    shape: DispatchShape
    results_count: int
    seconds: float


@dataclasses.dataclass
class BaselineResult:
    total: np.int32
    seconds: float


class ParallelSum:
    """
    The batched parallel reduction: plan, size, dispatch once, wait, aggregate.

    Parameters:
    -----------
    device : ComputeDevice
        Where the segment reduction kernel runs.
    elements_per_sum : int
        Segment size S, the number of elements each kernel instance reduces
        (default: 10_000).

    Methods:
    --------
    run(data) -> ParallelResult
        Reduce `data` on the device and time the dispatch through aggregation.
    """

    def __init__(self, device, elements_per_sum: int = ELEMENTS_PER_SUM):
        self.device = device
        self.elements_per_sum = check_positive(elements_per_sum, "elements_per_sum")

    def prepare(self, data):
        """
        Validate sizes, upload the dataset and encode one command buffer.

        Everything here happens before the clock starts. Invalid sizes are
        rejected before any buffer is allocated.
        """
        # on MPI only the root holds the data
        count = self.device.sync_count(len(data) if data is not None else None)
        results_count = plan(count, self.elements_per_sum)
        self.device.validate(count, self.elements_per_sum)
        shape = size_dispatch(results_count, self.device.execution_width)

        data_buffer = self.device.make_buffer(data)
        results_buffer = self.device.make_results_buffer(results_count)
        command = self.device.encode(shape, data_buffer, count, self.elements_per_sum,
                                     results_buffer)
        return command, results_buffer, shape, results_count

    def run(self, data) -> ParallelResult:
        command, results_buffer, shape, results_count = self.prepare(data)

        with Stopwatch() as watch:
            command.commit()
            # completion barrier: nothing reads the partials before this returns
            command.wait_until_completed()
            partials = self.device.read_buffer(results_buffer)
            total = aggregate(partials)

        return ParallelResult(total=total, partials=partials, shape=shape,
                              results_count=results_count, seconds=watch.seconds)


def run_baseline(data, method: str = "numpy") -> BaselineResult:
    """Time the sequential host reduction of the whole dataset."""
    with Stopwatch() as watch:
        total = reduce_all(data, method=method)
    return BaselineResult(total=total, seconds=watch.seconds)


def compare(parallel_total, baseline_total, strict: bool = False) -> bool:
    """
    Check that both paths agree. A mismatch is a warning on stderr, or a
    ReductionMismatch when `strict` is set.
    """
    if int(parallel_total) == int(baseline_total):
        return True
    message = f"parallel result {parallel_total} differs from baseline result {baseline_total}"
    if strict:
        raise ReductionMismatch(message)
    print(f"warning: {message}", file=sys.stderr)
    return False
