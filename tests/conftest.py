"""Shared pytest fixtures for the tracker tests."""

import numpy as np
import pytest

from ctrv_estimation import UKFConfig
from ctrv_estimation.data import simulate_ctrv_track


@pytest.fixture
def rng():
    """Seeded random number generator for reproducibility."""
    return np.random.default_rng(42)


@pytest.fixture
def config():
    """Default tuning."""
    return UKFConfig()


@pytest.fixture
def scenario(rng, config):
    """Noisy turning target observed alternately by lidar and radar."""
    return simulate_ctrv_track(n_steps=200, dt=0.05, config=config, rng=rng)


@pytest.fixture
def smooth_scenario(rng, config):
    """Constant turn rate target (no process noise), noisy measurements."""
    return simulate_ctrv_track(n_steps=200, dt=0.05, config=config, rng=rng,
                               process_noise=False)


def assert_valid_covariance(P, tol=1e-9):
    """P must be symmetric with non-negative eigenvalues."""
    np.testing.assert_allclose(P, P.T, atol=tol)
    assert np.all(np.linalg.eigvalsh(P) >= -tol)
