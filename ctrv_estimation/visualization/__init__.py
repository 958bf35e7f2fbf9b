"""
Visualization utilities for the tracker.
"""

from .trajectories import plot_trajectory
from .covariances import plot_covariance_ellipse, plot_nis

__all__ = [
    'plot_trajectory',
    'plot_covariance_ellipse',
    'plot_nis',
]
