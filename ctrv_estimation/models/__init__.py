"""
Process and sensor models for the CTRV tracker.

This module provides the CTRV motion model and the lidar and radar
measurement models used by the estimator.
"""

from .ctrv import CTRVModel, PX, PY, V, YAW, YAW_RATE, STATE_DIM, NOISE_DIM
from .sensors import LidarModel, RadarModel

__all__ = [
    'CTRVModel',
    'LidarModel',
    'RadarModel',
    'PX',
    'PY',
    'V',
    'YAW',
    'YAW_RATE',
    'STATE_DIM',
    'NOISE_DIM',
]
