"""
Angle utilities for state estimation.

Functions for normalizing angles into (-pi, pi] and computing angle
differences correctly across the discontinuity.
"""

import numpy as np


def normalize_angle(angle):
    """
    Normalize angle to the half-open interval (-pi, pi].

    Parameters
    ----------
    angle : float or np.ndarray
        Angle(s) in radians

    Returns
    -------
    float or np.ndarray
        Normalized angle(s) in (-pi, pi]

    Examples
    --------
    >>> normalize_angle(4.0)
    -2.2831853071795862
    >>> normalize_angle(-np.pi)
    3.141592653589793
    """
    wrapped = np.pi - np.mod(np.pi - np.asarray(angle, dtype=float), 2.0 * np.pi)
    # np.mod can round up to exactly 2*pi for tiny negative inputs
    wrapped = np.where(wrapped <= -np.pi, wrapped + 2.0 * np.pi, wrapped)
    if np.ndim(wrapped) == 0:
        return float(wrapped)
    return wrapped


def angle_diff(angle1, angle2):
    """
    Compute the smallest difference between two angles.

    Parameters
    ----------
    angle1 : float or np.ndarray
        First angle(s) in radians
    angle2 : float or np.ndarray
        Second angle(s) in radians

    Returns
    -------
    float or np.ndarray
        Smallest angular difference in (-pi, pi]
    """
    return normalize_angle(np.asarray(angle1) - np.asarray(angle2))
