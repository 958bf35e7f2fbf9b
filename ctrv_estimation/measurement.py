"""
Measurement records consumed by the estimator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np


class SensorType(Enum):
    """Sensor that produced a measurement; values are the log-file letters."""
    LIDAR = 'L'
    RADAR = 'R'

    @classmethod
    def coerce(cls, value):
        """
        Convert ``value`` to a SensorType.

        Accepts a SensorType, the log letters 'L'/'R' or the names
        'lidar'/'laser'/'radar' in any case.

        Raises
        ------
        ValueError
            If ``value`` names no known sensor
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in ('L', 'LIDAR', 'LASER'):
                return cls.LIDAR
            if key in ('R', 'RADAR'):
                return cls.RADAR
        raise ValueError(f"Unknown sensor type: {value!r}")


@dataclass
class Measurement:
    """
    One timestamped sensor observation.

    Attributes
    ----------
    sensor_type : SensorType
        Producing sensor
    timestamp : int
        Monotonic timestamp in microseconds
    values : np.ndarray
        LIDAR: [px, py]; RADAR: [rho, phi, rho_dot]
    ground_truth : np.ndarray, optional
        True [px, py, vx, vy] when known (logs and simulations)
    """
    sensor_type: SensorType
    timestamp: int
    values: np.ndarray
    ground_truth: Optional[np.ndarray] = field(default=None, repr=False)

    def __post_init__(self):
        self.timestamp = int(self.timestamp)
        self.values = np.asarray(self.values, dtype=float)
        if self.ground_truth is not None:
            self.ground_truth = np.asarray(self.ground_truth, dtype=float)
