"""
Pytest configuration and shared fixtures for the parallel sum tests.
"""

import numpy as np
import pytest

from parsum.devices import HostDevice
from parsum.kernels import WORD


@pytest.fixture
def host_device():
    """A small host thread pool standing in for the compute device."""
    device = HostDevice(width=4, workers=4)
    yield device
    device.close()


@pytest.fixture
def five_values():
    return np.array([1, 2, 3, 4, 5], dtype=WORD)


@pytest.fixture
def random_data():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 100, size=100_003, dtype=WORD)
