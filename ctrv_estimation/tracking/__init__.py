"""
Single-object lidar/radar tracking.
"""

from .estimator import StateEstimator, ProcessResult, ProcessStatus

__all__ = [
    'StateEstimator',
    'ProcessResult',
    'ProcessStatus',
]
