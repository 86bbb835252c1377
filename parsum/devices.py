# Author      : Tyson Limato
# Date        : 2025-7-3
# File Name   : devices.py
import os
from concurrent.futures import ThreadPoolExecutor, wait

import numpy as np

from parsum.errors import DispatchFailure, InvalidInput, SetupError
from parsum.kernels import KERNEL_NAME, WORD, parsum
from parsum.partition import check_positive

BACKENDS = ("gpu", "host", "mpi")


class CommandBuffer:
    """
    A single encoded kernel call.

    Methods:
    --------
    commit()
        Begin asynchronous execution. A command buffer can be committed once.

    wait_until_completed()
        Block until every kernel instance has finished, raising DispatchFailure
        if the device reported an error.
    """

    def __init__(self):
        self.committed = False
        self.completed = False

    def _mark_committed(self):
        if self.committed:
            raise DispatchFailure("command buffer was already committed")
        self.committed = True

    def _check_waitable(self):
        if not self.committed:
            raise DispatchFailure("wait_until_completed() called before commit()")

    def commit(self):
        raise NotImplementedError

    def wait_until_completed(self):
        raise NotImplementedError


class ComputeDevice:
    """
    Abstract compute device that runs the segment reduction kernel.

    Every backend (thread pool, CUDA through CuPy, MPI ranks) implements this
    interface so the pipeline never needs to know which one it is talking to.

    Attributes:
    -----------
    label : str
        Short name used in the printed results ("GPU", "Host", "MPI").
    execution_width : int
        The device's natural concurrency granularity. Dispatches use exactly
        this many threads per group.
    is_root : bool
        Whether this process prints results (always True outside MPI).
    """
    label = "Device"

    @property
    def execution_width(self) -> int:
        raise NotImplementedError

    @property
    def description(self) -> str:
        return self.label

    @property
    def is_root(self) -> bool:
        return True

    def sync_count(self, count):
        """Agree on the element count across processes. A no-op for single-process devices."""
        return count

    def share_root_flag(self, flag: bool) -> bool:
        """Hand the root's `flag` to every process. A no-op for single-process devices."""
        return flag

    def validate(self, count: int, elements_per_sum: int):
        """Reject sizes the device cannot represent. Called before any allocation."""

    def make_buffer(self, array: np.ndarray):
        """Copy the dataset into device-visible memory."""
        raise NotImplementedError

    def make_results_buffer(self, length: int):
        raise NotImplementedError

    def buffer_length(self, buffer) -> int:
        return len(buffer)

    def read_buffer(self, buffer) -> np.ndarray:
        """Bring a buffer back to host memory. Only valid after the completion barrier."""
        raise NotImplementedError

    def encode(self, shape, data_buffer, count: int, elements_per_sum: int,
               results_buffer) -> CommandBuffer:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def check_dataset(array) -> np.ndarray:
    """Reject anything that is not a non-empty 1-D array of WORD values."""
    if not isinstance(array, np.ndarray):
        raise InvalidInput(f"dataset must be a numpy array, got {type(array).__name__}")
    if array.ndim != 1:
        raise InvalidInput(f"dataset must be one dimensional, got shape {array.shape}")
    if array.dtype != WORD:
        raise InvalidInput(f"dataset dtype {array.dtype} does not match device word {np.dtype(WORD)}")
    if array.size == 0:
        raise InvalidInput("dataset is empty, nothing to reduce")
    return array


# ------------------ Host Command Buffer ------------------
class HostCommandBuffer(CommandBuffer):
    """Runs one task per thread group on the device's thread pool."""

    def __init__(self, executor, kernel, shape, data, count, elements_per_sum, sums):
        super().__init__()
        self.executor = executor
        self.kernel = kernel
        self.shape = shape
        self.data = data
        self.count = count
        self.elements_per_sum = elements_per_sum
        self.sums = sums
        self.futures = []

    def _run_group(self, group: int):
        first = group * self.shape.threads_per_group
        for thread_position in range(first, first + self.shape.threads_per_group):
            self.kernel(thread_position, self.data, self.count, self.sums, self.elements_per_sum)

    def commit(self):
        self._mark_committed()
        try:
            self.futures = [self.executor.submit(self._run_group, group)
                            for group in range(self.shape.groups)]
        except RuntimeError as e:
            # executor already shut down
            raise DispatchFailure(f"host dispatch failed: {e}") from e

    def wait_until_completed(self):
        self._check_waitable()
        wait(self.futures)
        for future in self.futures:
            error = future.exception()
            if error is not None:
                raise DispatchFailure(f"host kernel instance failed: {error}") from error
        self.completed = True


# ------------------ Host Device ------------------
class HostDevice(ComputeDevice):
    """
    Emulates the device grid on the host with a thread pool.

    numpy releases the GIL inside its integer reductions, so groups really do
    run side by side.

    Parameters:
    -----------
    width : int
        Threads per group reported as the execution width (default: 32, a warp).
    workers : int
        Pool size (default: number of CPUs).
    kernel : callable
        Kernel run at every grid position (default: kernels.parsum).
    """
    label = "Host"

    def __init__(self, width: int = 32, workers: int = None, kernel=parsum):
        self.width = check_positive(width, "execution width")
        self.workers = check_positive(workers or os.cpu_count() or 1, "workers")
        self.kernel = kernel
        self.executor = ThreadPoolExecutor(max_workers=self.workers,
                                           thread_name_prefix="parsum")

    @property
    def execution_width(self) -> int:
        return self.width

    @property
    def description(self) -> str:
        return f"Host thread pool ({self.workers} workers, width {self.width})"

    def make_buffer(self, array: np.ndarray):
        # explicit copy, the host-side equivalent of uploading to the device
        return check_dataset(array).copy()

    def make_results_buffer(self, length: int):
        return np.zeros(length, dtype=WORD)

    def read_buffer(self, buffer) -> np.ndarray:
        return buffer

    def encode(self, shape, data_buffer, count, elements_per_sum, results_buffer):
        return HostCommandBuffer(self.executor, self.kernel, shape, data_buffer,
                                 count, elements_per_sum, results_buffer)

    def close(self):
        self.executor.shutdown(wait=True)


def make_device(backend: str = "gpu", device_id: int = 0, width: int = 32,
                workers: int = None, kernel_name: str = KERNEL_NAME,
                kernel_path: str = None) -> ComputeDevice:
    """
    Build the device for `backend`. CuPy and mpi4py are only imported when
    their backend is requested, so the host backend works without either.
    """
    if backend == "host":
        return HostDevice(width=width, workers=workers)
    if backend == "gpu":
        try:
            from parsum.cupy_device import CuPyDevice
        except ImportError as e:
            raise SetupError(f"gpu backend needs CuPy: {e}") from e
        return CuPyDevice(device_id=device_id, kernel_name=kernel_name, kernel_path=kernel_path)
    if backend == "mpi":
        try:
            from parsum.mpiMGR import MPIDevice
        except ImportError as e:
            raise SetupError(f"mpi backend needs mpi4py: {e}") from e
        return MPIDevice()
    raise SetupError(f"unknown backend {backend!r}, choose from {list(BACKENDS)}")
