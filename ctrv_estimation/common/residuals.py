"""
Residual functions for state estimation.

These functions compute residuals (differences) between states or measurements,
handling components like yaw or bearing that wrap around at +/-pi.
"""

import numpy as np
from .angles import normalize_angle


def residual(a, b, angle_indices=None):
    """
    Compute residual y = a - b.

    Handles angular components by normalizing their differences.

    Parameters
    ----------
    a : np.ndarray
        First vector
    b : np.ndarray
        Second vector
    angle_indices : sequence of int, optional
        Indices of angular components (in radians) that need normalization

    Returns
    -------
    np.ndarray
        Residual vector y = a - b with normalized angles

    Examples
    --------
    >>> residual(np.array([1.0, 3.1]), np.array([0.5, -3.1]), angle_indices=[1])
    array([ 0.5       , -0.08318531])
    """
    y = np.asarray(a, dtype=float) - np.asarray(b, dtype=float)

    if angle_indices:
        for idx in angle_indices:
            y[idx] = normalize_angle(y[idx])

    return y


def make_residual_fn(angle_indices=None):
    """
    Factory function to create a residual function with fixed angle indices.

    Parameters
    ----------
    angle_indices : sequence of int, optional
        Indices of angular components that need normalization

    Returns
    -------
    callable
        Residual function with signature (a, b) -> residual
    """
    angle_indices = tuple(angle_indices) if angle_indices else ()

    def residual_fn(a, b):
        return residual(a, b, angle_indices=angle_indices)

    return residual_fn
