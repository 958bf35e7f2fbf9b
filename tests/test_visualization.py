"""Smoke tests for the plotting helpers (headless backend)."""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pytest

from ctrv_estimation.visualization import plot_covariance_ellipse, plot_nis, plot_trajectory


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


def test_covariance_ellipse_axes():
    """Major axis follows the larger variance."""
    fig, ax = plt.subplots()
    ellipse = plot_covariance_ellipse([1.0, 2.0], np.diag([4.0, 1.0]), n_std=1.0, ax=ax)

    assert ellipse.width == pytest.approx(4.0)
    assert ellipse.height == pytest.approx(2.0)
    assert ellipse.angle % 180.0 == pytest.approx(0.0, abs=1e-9)


def test_plot_nis_threshold_line(tmp_path):
    path = tmp_path / "nis.png"
    fig, ax = plot_nis(np.array([1.0, 3.0, 9.0]), dim_z=3, show=False, save_path=path)

    assert path.exists()
    assert len(ax.lines) == 2
    assert ax.lines[1].get_ydata()[0] == pytest.approx(7.815, abs=1e-3)


def test_plot_trajectory(scenario, tmp_path):
    states = scenario['states']
    covariances = np.tile(0.1 * np.eye(5), (len(states), 1, 1))
    path = tmp_path / "trajectory.png"

    fig, ax = plot_trajectory(states, ground_truth=scenario['ground_truth'],
                              lidar_points=np.array([[5.0, 1.0]]),
                              radar_points=np.array([[5.1, 0.2, 3.0]]),
                              covariances=covariances, n_ellipses=5,
                              show=False, save_path=path)

    assert path.exists()
    assert len(ax.patches) == 5
