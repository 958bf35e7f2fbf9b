"""
Estimator configuration.

Process noise is tunable; sensor noise values come from the sensor
datasheet and are not meant to be tuned.
"""

import dataclasses
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class UKFConfig:
    """
    Configuration of the CTRV sensor-fusion UKF.

    Attributes
    ----------
    std_a : float
        Process noise std of longitudinal acceleration [m/s^2]
    std_yawdd : float
        Process noise std of yaw acceleration [rad/s^2]
    std_laspx, std_laspy : float
        Lidar position noise std [m]
    std_radr : float
        Radar range noise std [m]
    std_radphi : float
        Radar bearing noise std [rad]
    std_radrd : float
        Radar range-rate noise std [m/s]
    use_laser, use_radar : bool
        If False, measurements of that sensor are ignored after initialization
    yaw_rate_threshold : float
        Below this |yaw rate| the CTRV model uses straight-line motion
    min_radar_range : float
        Sigma points closer than this to the radar reject the update [m]
    symmetrize_covariance : bool
        Replace P by 0.5 * (P + P.T) after every update
    raise_on_reject : bool
        Propagate numeric errors instead of rejecting the measurement
    nis_maxlen : int or None
        Keep only the last ``nis_maxlen`` NIS values per sensor
    """
    std_a: float = 2.8
    std_yawdd: float = 1.1

    std_laspx: float = 0.15
    std_laspy: float = 0.15
    std_radr: float = 0.3
    std_radphi: float = 0.03
    std_radrd: float = 0.3

    use_laser: bool = True
    use_radar: bool = True

    yaw_rate_threshold: float = 1e-3
    min_radar_range: float = 1e-4
    symmetrize_covariance: bool = True
    raise_on_reject: bool = False
    nis_maxlen: Optional[int] = None

    def __post_init__(self):
        for name in ('std_a', 'std_yawdd', 'std_laspx', 'std_laspy',
                     'std_radr', 'std_radphi', 'std_radrd'):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.yaw_rate_threshold <= 0:
            raise ValueError(f"yaw_rate_threshold must be positive, got {self.yaw_rate_threshold}")
        if self.min_radar_range < 0:
            raise ValueError(f"min_radar_range must be non-negative, got {self.min_radar_range}")
        if self.nis_maxlen is not None and self.nis_maxlen < 1:
            raise ValueError(f"nis_maxlen must be None or >= 1, got {self.nis_maxlen}")

    def process_noise_cov(self):
        """2x2 covariance of [nu_a, nu_yawdd]."""
        return np.diag([self.std_a**2, self.std_yawdd**2])

    def lidar_noise_cov(self):
        return np.diag([self.std_laspx**2, self.std_laspy**2])

    def radar_noise_cov(self):
        return np.diag([self.std_radr**2, self.std_radphi**2, self.std_radrd**2])

    def replace(self, **changes):
        """Return a copy with ``changes`` applied (validated again)."""
        return dataclasses.replace(self, **changes)
