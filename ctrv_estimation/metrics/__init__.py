"""
Performance and consistency metrics for the tracker.
"""

from .nis import NISHistory
from .performance import (rmse, state_to_cartesian, chi2_threshold, nis_consistency,
                          compute_tracking_metrics, print_metrics)

__all__ = [
    'NISHistory',
    'rmse',
    'state_to_cartesian',
    'chi2_threshold',
    'nis_consistency',
    'compute_tracking_metrics',
    'print_metrics',
]
