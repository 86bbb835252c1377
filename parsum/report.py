# Author      : Tyson Limato
# Date        : 2025-7-9
# File Name   : report.py
import matplotlib.pyplot as plt
import pandas as pd

COLUMNS = ["run", "path", "result", "seconds"]


def format_result(label: str, total, seconds: float) -> str:
    return f"{label} result: {int(total)}, time: {seconds}"


def format_stats(label: str, stats) -> str:
    return (f"{label} over {stats.runs} runs: mean={stats.mean:.6f}s, std={stats.std:.6f}s, "
            f"best={stats.best:.6f}s, worst={stats.worst:.6f}s")


def print_device_info(device):
    """Print what the parallel path runs on, the way the GPU properties are listed before training."""
    print(device.description)


def format_width(device) -> str:
    return f"Execution width: {device.execution_width}"


def results_frame(records: list) -> pd.DataFrame:
    """
    Collect per-run results into a table.

    Parameters:
    -----------
    records : list of tuple
        (run, path, result, seconds) for every timed path of every run.

    Returns:
    --------
    pd.DataFrame
        One row per record with the columns run, path, result and seconds.
    """
    frame = pd.DataFrame(records, columns=COLUMNS)
    frame["result"] = frame["result"].astype("int64")
    return frame


def save_csv(frame: pd.DataFrame, path: str):
    frame.to_csv(path, index=False)


def plot_timings(frame: pd.DataFrame, filename: str = "parsum_timings.png"):
    """
    Uses matplotlib to plot the elapsed time of every path against the run
    number, and saves to `filename`.
    """
    fig, ax = plt.subplots(figsize=(8, 5))

    for path, rows in frame.groupby("path", sort=False):
        ax.plot(rows["run"], rows["seconds"], label=path, linestyle='-', marker='o')

    ax.set_xlabel('Run')
    ax.set_ylabel('Time (s)')
    ax.set_yscale('log')
    ax.legend(loc='upper right', fontsize='small')

    plt.title('Parallel vs. Sequential Sum Time per Run')
    fig.tight_layout()
    fig.savefig(filename)
    plt.close(fig)
