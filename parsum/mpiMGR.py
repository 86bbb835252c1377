# Author      : Tyson Limato
# Date        : 2025-7-8
# File Name   : mpiMGR.py
from mpi4py import MPI
import numpy as np

from parsum.devices import CommandBuffer, ComputeDevice, check_dataset
from parsum.errors import DispatchFailure, InvalidInput
from parsum.kernels import WORD, parsum


class MPIManager:
    """
    A utility class to handle the MPI traffic of the parallel sum using `mpi4py`.

    Methods:
    --------
    broadcast_count(count, root=0)
        Shares the element count known on the root with every rank.

    broadcast_dataset(array, root=0)
        Copies the dataset from the root process into a buffer on every rank.

    start_allreduce(local, result)
        Starts a non-blocking element-wise sum of every rank's partial sums.
    """

    def __init__(self, comm=None):
        # Initialize the MPI communicator
        self.comm = comm or MPI.COMM_WORLD
        # Get the rank (ID) of the current process
        self.rank = self.comm.Get_rank()
        # Get the total number of processes
        self.size = self.comm.Get_size()

    def broadcast_count(self, count, root: int = 0):
        return self.comm.bcast(count if self.rank == root else None, root=root)

    def broadcast_flag(self, flag: bool, root: int = 0) -> bool:
        return bool(self.comm.bcast(bool(flag) if self.rank == root else None, root=root))

    def broadcast_dataset(self, array, root: int = 0) -> np.ndarray:
        """
        Broadcast the dataset from the root process to all other MPI processes.

        The root validates the array first and broadcasts either its length or
        the validation error, so every rank fails together instead of the
        others hanging in the collective.

        Parameters:
        -----------
        array : np.ndarray or None
            The dataset on the root, ignored elsewhere.
        root : int
            The rank that holds the dataset (default is 0).

        Returns:
        --------
        np.ndarray
            A private copy of the dataset on every rank.
        """
        header = None
        if self.rank == root:
            try:
                header = (len(check_dataset(array)), None)
            except InvalidInput as e:
                header = (0, str(e))
        count, error = self.comm.bcast(header, root=root)
        if error:
            raise InvalidInput(error)

        if self.rank == root:
            buf = array.copy()
        else:
            buf = np.empty(count, dtype=WORD)
        # Buffer based Bcast works on NumPy arrays without pickling
        self.comm.Bcast([buf, MPI.INT], root=root)
        return buf

    def start_allreduce(self, local: np.ndarray, result: np.ndarray):
        # Every slot is written on exactly one rank and is zero on the others,
        # so summing across ranks assembles the complete buffer
        return self.comm.Iallreduce([local, MPI.INT], [result, MPI.INT], op=MPI.SUM)

    def any_rank(self, flag: bool) -> bool:
        return self.comm.allreduce(flag, op=MPI.LOR)


class MPICommandBuffer(CommandBuffer):
    """
    Each rank runs the kernel for the thread positions whose in-group index
    maps to it, then the partial buffers are combined with a non-blocking
    all-reduce. wait_until_completed() is the completion barrier.
    """

    def __init__(self, manager, shape, data, count, elements_per_sum, sums):
        super().__init__()
        self.manager = manager
        self.shape = shape
        self.data = data
        self.count = count
        self.elements_per_sum = elements_per_sum
        self.sums = sums
        self.request = None
        self.error = None

    def _run_local(self, local: np.ndarray):
        rank, size = self.manager.rank, self.manager.size
        tpg = self.shape.threads_per_group
        for group in range(self.shape.groups):
            for thread in range(rank, tpg, size):
                parsum(group * tpg + thread, self.data, self.count, local, self.elements_per_sum)

    def commit(self):
        self._mark_committed()
        local = np.zeros_like(self.sums)
        try:
            self._run_local(local)
        except Exception as e:
            # still join the collective so the other ranks are not left waiting
            self.error = e
            local[:] = 0
        try:
            self.request = self.manager.start_allreduce(local, self.sums)
        except MPI.Exception as e:
            raise DispatchFailure(f"MPI all-reduce could not start: {e}") from e

    def wait_until_completed(self):
        self._check_waitable()
        try:
            self.request.Wait()
        except MPI.Exception as e:
            raise DispatchFailure(f"MPI all-reduce failed: {e}") from e
        if self.manager.any_rank(self.error is not None):
            raise DispatchFailure(f"kernel failed on rank {self.manager.rank}: {self.error}"
                                  if self.error else "kernel failed on another rank")
        self.completed = True


class MPIDevice(ComputeDevice):
    """
    Treats the ranks of an MPI communicator as the lanes of one thread group:
    the execution width is the number of ranks.
    """
    label = "MPI"

    def __init__(self, manager: MPIManager = None):
        self.manager = manager or MPIManager()

    @property
    def execution_width(self) -> int:
        return self.manager.size

    @property
    def description(self) -> str:
        return f"MPI communicator with {self.manager.size} ranks ({MPI.Get_library_version().splitlines()[0]})"

    @property
    def is_root(self) -> bool:
        return self.manager.rank == 0

    def sync_count(self, count):
        return self.manager.broadcast_count(count)

    def share_root_flag(self, flag: bool) -> bool:
        return self.manager.broadcast_flag(flag)

    def make_buffer(self, array):
        return self.manager.broadcast_dataset(array)

    def make_results_buffer(self, length: int):
        return np.zeros(length, dtype=WORD)

    def read_buffer(self, buffer) -> np.ndarray:
        return buffer

    def encode(self, shape, data_buffer, count, elements_per_sum, results_buffer):
        return MPICommandBuffer(self.manager, shape, data_buffer, count,
                                elements_per_sum, results_buffer)
