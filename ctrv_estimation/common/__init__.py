"""
Common utilities for state estimation.

Includes angle handling and residual functions.
"""

from .angles import normalize_angle, angle_diff
from .residuals import residual, make_residual_fn

__all__ = [
    'normalize_angle',
    'angle_diff',
    'residual',
    'make_residual_fn',
]
