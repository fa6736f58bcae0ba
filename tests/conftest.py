import numpy as np
import pytest

from wind_tunnel_sim.solver import initialize_taichi_backend


@pytest.fixture(scope="session", autouse=True)
def taichi_cpu():
    initialize_taichi_backend("cpu")


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
