import numpy as np
import pytest

cp = pytest.importorskip("cupy")

try:
    _num_gpus = cp.cuda.runtime.getDeviceCount()
except cp.cuda.runtime.CUDARuntimeError:
    _num_gpus = 0
if _num_gpus == 0:
    pytest.skip("a CUDA device is required", allow_module_level=True)

from parsum.cupy_device import CuPyDevice
from parsum.errors import InvalidInput, SetupError
from parsum.kernels import WORD
from parsum.partition import plan
from parsum.pipeline import ParallelSum, run_baseline
from parsum.sizer import DispatchShape, size_dispatch


@pytest.fixture(scope="module")
def gpu():
    return CuPyDevice()


def test_width_is_the_warp_size(gpu):
    assert gpu.execution_width == cp.cuda.Device(0).attributes["WarpSize"]


def test_scenario(gpu):
    data = np.array([1, 2, 3, 4, 5], dtype=WORD)
    result = ParallelSum(gpu, elements_per_sum=2).run(data)
    assert result.partials.tolist() == [3, 7, 5]
    assert result.total == 15


def test_demo_size_matches_baseline(gpu):
    data = np.random.default_rng(0).integers(0, 100, size=10_000_005, dtype=WORD)
    result = ParallelSum(gpu, elements_per_sum=10_000).run(data)
    assert result.results_count == 1001
    assert result.total == run_baseline(data).total


def test_wraparound_matches_host(gpu):
    data = np.full(1000, np.iinfo(WORD).max, dtype=WORD)
    result = ParallelSum(gpu, elements_per_sum=64).run(data)
    assert result.total == run_baseline(data).total


def test_over_provisioned_grid(gpu):
    data = np.ones(1000, dtype=WORD)
    results_count = plan(1000, 10)
    exact = size_dispatch(results_count, gpu.execution_width)
    backing = cp.full(results_count + 32, -7, dtype=WORD)
    command = gpu.encode(DispatchShape(exact.groups + 4, exact.threads_per_group),
                         gpu.make_buffer(data), 1000, 10, backing[:results_count])
    command.commit()
    command.wait_until_completed()
    host = cp.asnumpy(backing)
    assert (host[:results_count] == 10).all()
    assert (host[results_count:] == -7).all()


def test_unknown_kernel_name():
    with pytest.raises(SetupError):
        CuPyDevice(kernel_name="no_such_kernel")


def test_unknown_device():
    with pytest.raises(SetupError):
        CuPyDevice(device_id=_num_gpus)


def test_counts_beyond_32_bit(gpu):
    with pytest.raises(InvalidInput):
        gpu.validate(2**32, 10)
