"""
CTRV Tracking Library

Unscented Kalman Filter that tracks a single object with a Constant Turn
Rate and Velocity (CTRV) motion model, fusing lidar position and radar
range/bearing/range-rate measurements.

License: MIT
"""

__version__ = "1.0.0"

from .config import UKFConfig
from .errors import (EstimationError, InitializationError, UnknownSensorError,
                     TimestampOrderError, NonPositiveDefiniteCovariance,
                     SingularInnovationCovariance, DegenerateRadarGeometry)
from .measurement import Measurement, SensorType
from .filters.unscented import AugmentedSigmaPoints, UnscentedKalmanFilter
from .metrics.nis import NISHistory
from .tracking.estimator import StateEstimator, ProcessResult, ProcessStatus

__all__ = [
    'UKFConfig',
    'Measurement',
    'SensorType',
    'AugmentedSigmaPoints',
    'UnscentedKalmanFilter',
    'NISHistory',
    'StateEstimator',
    'ProcessResult',
    'ProcessStatus',
    'EstimationError',
    'InitializationError',
    'UnknownSensorError',
    'TimestampOrderError',
    'NonPositiveDefiniteCovariance',
    'SingularInnovationCovariance',
    'DegenerateRadarGeometry',
]
