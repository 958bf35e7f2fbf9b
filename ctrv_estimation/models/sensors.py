"""
Measurement models for the lidar and radar sensors.

Each model provides the measurement function h(x), its noise covariance R,
the residual function for its measurement space and the belief used to
initialize the filter from a first measurement.

Lidar measurement: z = [px, py]
Radar measurement: z = [rho, phi, rho_dot]
- rho: range [m]
- phi: bearing [rad], counter-clockwise from the x axis
- rho_dot: range rate [m/s]
"""

import numpy as np

from ..common.residuals import make_residual_fn
from ..errors import DegenerateRadarGeometry
from .ctrv import PX, PY, V, YAW, STATE_DIM


class LidarModel:
    """
    Linear lidar model observing position directly.

    Parameters
    ----------
    std_laspx, std_laspy : float
        Position noise standard deviations [m]
    """

    dim_z = 2
    angle_indices = ()

    def __init__(self, std_laspx=0.15, std_laspy=0.15):
        self.std_laspx = std_laspx
        self.std_laspy = std_laspy
        self.R = np.diag([std_laspx**2, std_laspy**2])
        self.residual = make_residual_fn(self.angle_indices)

    @classmethod
    def from_config(cls, config):
        return cls(std_laspx=config.std_laspx, std_laspy=config.std_laspy)

    def measurement(self, x):
        """Measurement model: z = h(x) = [px, py]."""
        return np.array([x[PX], x[PY]])

    def initial_belief(self, z):
        """
        Belief after a first lidar measurement.

        Speed, yaw and yaw rate are unobserved and get unit variance.

        Returns
        -------
        x0 : np.ndarray
            [px, py, 0, 0, 0]
        P0 : np.ndarray
            diag(std_laspx^2, std_laspy^2, 1, 1, 1)
        """
        x0 = np.zeros(STATE_DIM)
        x0[PX], x0[PY] = z[0], z[1]
        P0 = np.diag([self.std_laspx**2, self.std_laspy**2, 1.0, 1.0, 1.0])
        return x0, P0


class RadarModel:
    """
    Nonlinear radar model observing range, bearing and range rate.

    Parameters
    ----------
    std_radr : float
        Range noise standard deviation [m]
    std_radphi : float
        Bearing noise standard deviation [rad]
    std_radrd : float
        Range-rate noise standard deviation [m/s]
    min_range : float, optional
        States closer to the sensor than this raise
        DegenerateRadarGeometry, since range rate divides by range
    """

    dim_z = 3
    angle_indices = (1,)

    def __init__(self, std_radr=0.3, std_radphi=0.03, std_radrd=0.3, min_range=1e-4):
        self.std_radr = std_radr
        self.std_radphi = std_radphi
        self.std_radrd = std_radrd
        self.min_range = min_range
        self.R = np.diag([std_radr**2, std_radphi**2, std_radrd**2])
        self.residual = make_residual_fn(self.angle_indices)

    @classmethod
    def from_config(cls, config):
        return cls(std_radr=config.std_radr, std_radphi=config.std_radphi,
                   std_radrd=config.std_radrd, min_range=config.min_radar_range)

    def measurement(self, x):
        """
        Measurement model: z = h(x) = [rho, phi, rho_dot]

        Raises
        ------
        DegenerateRadarGeometry
            If the range is below ``min_range`` (or not finite)
        """
        p_x, p_y, v, yaw = x[PX], x[PY], x[V], x[YAW]

        rho = np.hypot(p_x, p_y)
        if not rho >= self.min_range or rho == 0.0:
            raise DegenerateRadarGeometry(
                f"range {rho:.3e} m is below the minimum of {self.min_range:.3e} m"
            )

        v_x = np.cos(yaw) * v
        v_y = np.sin(yaw) * v

        return np.array([
            rho,
            np.arctan2(p_y, p_x),
            (p_x * v_x + p_y * v_y) / rho,
        ])

    def initial_belief(self, z):
        """
        Belief after a first radar measurement.

        The range rate is taken as the speed; the heading is unknown and
        left at zero.

        Returns
        -------
        x0 : np.ndarray
            [rho cos(phi), rho sin(phi), |rho_dot|, 0, 0]
        P0 : np.ndarray
            diag(std_radr^2, std_radr^2, 1, std_radphi^2, std_radphi^2)
        """
        rho, phi, rho_dot = z[0], z[1], z[2]
        v_x = rho_dot * np.cos(phi)
        v_y = rho_dot * np.sin(phi)

        x0 = np.zeros(STATE_DIM)
        x0[PX] = rho * np.cos(phi)
        x0[PY] = rho * np.sin(phi)
        x0[V] = np.sqrt(v_x * v_x + v_y * v_y)

        P0 = np.diag([self.std_radr**2, self.std_radr**2, 1.0,
                      self.std_radphi**2, self.std_radphi**2])
        return x0, P0
