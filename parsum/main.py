# ------------------------------------------------------------
# Author      : Tyson Limato
# Date        : 2025-7-10
# File Name   : main.py
# Description : Sums a large random dataset twice: once as a batched
#               parallel reduction (one partial sum per segment, computed
#               on a GPU, a host thread pool or MPI ranks, then folded on
#               the host) and once sequentially on the CPU, and prints
#               both results and both elapsed times.
#
# Usage       : python -m parsum.main [--backend gpu|host|mpi] [--count N]
#                                    [--elements_per_sum S] [--repeats K] ...
#               For the MPI backend: mpiexec -n 4 python -m parsum.main --backend mpi
#
# Dependencies:
#       - numpy
#       - pandas
#       - matplotlib
#       - cupy (Cuda 12x variant, gpu backend only)
#       - mpi4py (mpi backend only)
# ------------------------------------------------------------
import argparse
import sys

from parsum.devices import BACKENDS, make_device
from parsum.errors import ParsumError, ReductionMismatch
from parsum.example_data_generator import COUNT, HIGH, check_high, generate_dataset
from parsum.kernels import KERNEL_NAME
from parsum.partition import check_positive, plan
from parsum.pipeline import ELEMENTS_PER_SUM, ParallelSum, compare, run_baseline
from parsum.reducers import BASELINE_METHODS
from parsum.report import (format_result, format_stats, format_width, plot_timings,
                           print_device_info, results_frame, save_csv)
from parsum.timing import calculate_stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare a batched parallel sum against a sequential CPU sum.")
    parser.add_argument('--count', type=int, default=COUNT,
                        help="number of values to sum")
    parser.add_argument('--elements_per_sum', type=int, default=ELEMENTS_PER_SUM,
                        help="values reduced by each kernel instance")
    parser.add_argument('--backend', type=str, default="gpu", choices=BACKENDS)
    parser.add_argument('--device_id', type=int, default=0,
                        help="CUDA device ordinal (gpu backend)")
    parser.add_argument('--width', type=int, default=32,
                        help="execution width of the host thread pool (host backend)")
    parser.add_argument('--workers', type=int, default=None,
                        help="host thread pool size (host backend)")
    parser.add_argument('--kernel_name', type=str, default=KERNEL_NAME)
    parser.add_argument('--kernel_path', type=str, default=None,
                        help="prebuilt cubin/ptx module holding the kernel (gpu backend)")
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--high', type=int, default=HIGH,
                        help="generated values are drawn from [0, high)")
    parser.add_argument('--baseline', type=str, default="loop", choices=BASELINE_METHODS,
                        help="'loop' adds values one at a time like a plain CPU loop and is "
                             "much slower than 'numpy'")
    parser.add_argument('--repeats', type=int, default=1)
    parser.add_argument('--strict', action='store_true',
                        help="fail when the two results differ instead of warning")
    parser.add_argument('--csv', type=str, default=None,
                        help="write per-run results to this CSV file")
    parser.add_argument('--plot', type=str, default=None,
                        help="save a timing plot to this image file")
    parser.add_argument('--info', action='store_true',
                        help="print device information")
    return parser


def run(args) -> int:
    # Reject bad sizes on every rank before anything is allocated
    plan(args.count, args.elements_per_sum)
    repeats = check_positive(args.repeats, "repeats")
    check_high(args.high)

    device = make_device(args.backend, device_id=args.device_id, width=args.width,
                         workers=args.workers, kernel_name=args.kernel_name,
                         kernel_path=args.kernel_path)
    with device:
        if device.is_root:
            if args.info:
                print_device_info(device)
            print(format_width(device))

        data = generate_dataset(args.count, seed=args.seed, high=args.high) if device.is_root else None
        summer = ParallelSum(device, args.elements_per_sum)

        records = []
        for run_idx in range(1, repeats + 1):
            parallel = summer.run(data)
            # Only the root prints and runs the baseline (for distributed environments)
            agree = True
            if device.is_root:
                print(format_result(device.label, parallel.total, parallel.seconds))
                baseline = run_baseline(data, method=args.baseline)
                print(format_result("CPU", baseline.total, baseline.seconds))
                agree = int(parallel.total) == int(baseline.total)

            # every rank must leave the loop together when --strict fails
            agree = device.share_root_flag(agree)
            if not device.is_root:
                if args.strict and not agree:
                    raise ReductionMismatch("parallel result differs from baseline on the root rank")
                continue

            compare(parallel.total, baseline.total, strict=args.strict)
            records.append((run_idx, device.label, parallel.total, parallel.seconds))
            records.append((run_idx, "CPU", baseline.total, baseline.seconds))

    if not device.is_root:
        return 0

    frame = results_frame(records)
    if repeats > 1:
        for path, rows in frame.groupby("path", sort=False):
            print(format_stats(path, calculate_stats(rows["seconds"].tolist())))
    if args.csv:
        save_csv(frame, args.csv)
    if args.plot:
        plot_timings(frame, args.plot)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ParsumError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
