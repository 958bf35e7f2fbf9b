"""
Unscented Kalman filtering for augmented-state models.

Provides the sigma-point generator, the unscented transform statistics
and the filter that combines them.
"""

from .unscented import (
    AugmentedSigmaPoints,
    UnscentedKalmanFilter,
    UpdateResult,
    unscented_mean,
    unscented_covariance,
    cross_covariance,
    invert_innovation_covariance,
    kalman_gain,
    normalized_innovation_squared,
)

__all__ = [
    'AugmentedSigmaPoints',
    'UnscentedKalmanFilter',
    'UpdateResult',
    'unscented_mean',
    'unscented_covariance',
    'cross_covariance',
    'invert_innovation_covariance',
    'kalman_gain',
    'normalized_innovation_squared',
]
