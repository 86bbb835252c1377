# Author      : Tyson Limato
# Date        : 2025-7-5
# File Name   : cupy_device.py
import cupy as cp
import numpy as np

from parsum.devices import CommandBuffer, ComputeDevice, check_dataset
from parsum.errors import DispatchFailure, InvalidInput, SetupError
from parsum.kernels import KERNEL_NAME, MAX_KERNEL_SCALAR, PARSUM_SOURCE, WORD

# Everything CuPy raises when the driver, the runtime or NVRTC is unhappy
CUDA_ERRORS = (
    cp.cuda.runtime.CUDARuntimeError,
    cp.cuda.driver.CUDADriverError,
    cp.cuda.compiler.CompileException,
)


class CuPyCommandBuffer(CommandBuffer):
    """One launch of the raw kernel on a dedicated stream."""

    def __init__(self, device, kernel, stream, shape, data, count, elements_per_sum, sums):
        super().__init__()
        self.device = device
        self.kernel = kernel
        self.stream = stream
        self.shape = shape
        self.args = (data, np.uint32(count), sums, np.uint32(elements_per_sum))

    def commit(self):
        self._mark_committed()
        try:
            with self.device, self.stream:
                self.kernel((self.shape.groups,), (self.shape.threads_per_group,), self.args)
        except CUDA_ERRORS as e:
            raise DispatchFailure(f"kernel launch failed: {e}") from e

    def wait_until_completed(self):
        self._check_waitable()
        try:
            self.stream.synchronize()
        except CUDA_ERRORS as e:
            raise DispatchFailure(f"kernel execution failed: {e}") from e
        self.completed = True


class CuPyDevice(ComputeDevice):
    """
    A CUDA GPU driven through CuPy.

    The segment reduction kernel is loaded from a RawModule and looked up by
    name. With `kernel_path` the module is a prebuilt cubin/ptx/fatbin file,
    otherwise the bundled source is compiled once by NVRTC (and cached by CuPy).

    Parameters:
    -----------
    device_id : int
        CUDA device ordinal (default: 0).
    kernel_name : str
        Name of the kernel function inside the module (default: "parsum").
    kernel_path : str
        Optional path of a prebuilt module.
    """
    label = "GPU"

    def __init__(self, device_id: int = 0, kernel_name: str = KERNEL_NAME, kernel_path: str = None):
        try:
            num_gpus = cp.cuda.runtime.getDeviceCount()
        except CUDA_ERRORS as e:
            raise SetupError(f"no CUDA runtime available: {e}") from e
        if not 0 <= device_id < num_gpus:
            raise SetupError(f"CUDA device {device_id} not found ({num_gpus} available)")

        self.device = cp.cuda.Device(device_id)
        try:
            self.props = cp.cuda.runtime.getDeviceProperties(device_id)
            self.warp_size = int(self.device.attributes["WarpSize"])
            with self.device:
                if kernel_path:
                    module = cp.RawModule(path=kernel_path)
                else:
                    module = cp.RawModule(code=PARSUM_SOURCE)
                self.kernel = module.get_function(kernel_name)
                self.stream = cp.cuda.Stream(non_blocking=True)
        except CUDA_ERRORS as e:
            raise SetupError(f"could not load kernel {kernel_name!r}: {e}") from e
        except OSError as e:
            raise SetupError(f"could not read kernel module {kernel_path!r}: {e}") from e

        self.kernel_name = kernel_name

    @property
    def execution_width(self) -> int:
        return self.warp_size

    @property
    def description(self) -> str:
        props = self.props
        return (f"GPU {self.device.id}: {props['name'].decode()}\n"
                f"  Compute Capability: {props['major']}.{props['minor']}\n"
                f"  Memory: {props['totalGlobalMem'] / 1e6:.2f} MB\n"
                f"  Multiprocessors: {props['multiProcessorCount']}\n"
                f"  Warp size: {self.warp_size}")

    def validate(self, count, elements_per_sum):
        # both travel to the kernel as unsigned int
        if count > MAX_KERNEL_SCALAR:
            raise InvalidInput(f"{count} elements exceed the kernel's 32-bit count")
        if elements_per_sum > MAX_KERNEL_SCALAR:
            raise InvalidInput(f"elements_per_sum {elements_per_sum} exceeds the kernel's 32-bit range")

    def make_buffer(self, array: np.ndarray):
        array = check_dataset(array)
        try:
            with self.device:
                return cp.asarray(array)
        except (cp.cuda.memory.OutOfMemoryError,) + CUDA_ERRORS as e:
            raise SetupError(f"could not allocate dataset buffer: {e}") from e

    def make_results_buffer(self, length: int):
        try:
            with self.device:
                return cp.zeros(length, dtype=WORD)
        except (cp.cuda.memory.OutOfMemoryError,) + CUDA_ERRORS as e:
            raise SetupError(f"could not allocate results buffer: {e}") from e

    def buffer_length(self, buffer) -> int:
        return int(buffer.size)

    def read_buffer(self, buffer) -> np.ndarray:
        return cp.asnumpy(buffer)

    def encode(self, shape, data_buffer, count, elements_per_sum, results_buffer):
        return CuPyCommandBuffer(self.device, self.kernel, self.stream, shape,
                                 data_buffer, count, elements_per_sum, results_buffer)
