# Author      : Tyson Limato
# Date        : 2025-7-2
# File Name   : sizer.py
import dataclasses

from parsum.partition import check_positive


@dataclasses.dataclass(frozen=True)
class DispatchShape:
    """
    How the partial sums are mapped onto the device's concurrency grid.

    Attributes:
    -----------
    groups : int
        Number of thread groups (blocks) in the 1-D grid.
    threads_per_group : int
        Threads per group, equal to the device's execution width.
    """
    groups: int
    threads_per_group: int

    @property
    def total_threads(self) -> int:
        return self.groups * self.threads_per_group


def size_dispatch(results_count, width) -> DispatchShape:
    """
    Size the grid for `results_count` kernel instances on a device whose
    natural concurrency granularity is `width` (warp size, rank count, ...).

    Every group gets exactly `width` threads and the number of groups is
    rounded up, so the grid covers all segments without requiring
    `results_count` to be a multiple of `width`. The surplus threads of the
    last group are turned away by the kernel's bounds check.

    Parameters:
    -----------
    results_count : int
        R, the number of segments to reduce.
    width : int
        W, reported by the device, never a constant.

    Returns:
    --------
    DispatchShape
        (ceil(R / W), W)
    """
    results_count = check_positive(results_count, "results_count")
    width = check_positive(width, "execution width")
    groups = (results_count + width - 1) // width
    return DispatchShape(groups=groups, threads_per_group=width)
