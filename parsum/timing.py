# Author      : Tyson Limato
# Date        : 2025-7-4
# File Name   : timing.py
import dataclasses
import math
import time

NSEC_PER_SEC = 1e9


class Stopwatch:
    """
    Monotonic wall-clock timer for one pipeline stage.

    with Stopwatch() as watch:
        ...
    print(watch.seconds)
    """

    def __init__(self):
        self.start = None
        self.end = None

    def __enter__(self):
        self.start = time.perf_counter_ns()
        self.end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end = time.perf_counter_ns()

    @property
    def nanoseconds(self) -> int:
        if self.start is None or self.end is None:
            raise RuntimeError("Stopwatch has not been run")
        return self.end - self.start

    @property
    def seconds(self) -> float:
        return self.nanoseconds / NSEC_PER_SEC


@dataclasses.dataclass
class Stats:
    runs: int
    mean: float
    std: float
    err: float
    best: float
    worst: float


def calculate_stats(durations: list) -> Stats:
    """
    Calculate statistical data from a list of durations.

    @param durations: A list of durations, all in the same unit.
    @return: A Stats object containing the number of runs, mean, standard deviation, error, best, and worst durations.
    """
    runs = len(durations)
    if runs == 0:
        raise ValueError("no durations to summarize")
    total = sum(durations)
    best = min(durations)
    worst = max(durations)

    avg = total / runs
    if runs > 1:
        variance = sum(map(lambda x: (x - avg)**2, durations))
        std = math.sqrt(variance / (runs - 1))
    else:
        std = 0.0
    err = std / math.sqrt(runs)

    return Stats(runs=runs, mean=avg, std=std, err=err, best=float(best),
                 worst=float(worst))
