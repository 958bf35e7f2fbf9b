"""
Constant Turn Rate and Velocity (CTRV) motion model.

State: x = [px, py, v, yaw, yaw_rate]
- (px, py): position in world frame [m]
- v: speed along the heading [m/s]
- yaw: heading angle [rad]
- yaw_rate: turn rate [rad/s]

Augmented state: x_aug = [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
- nu_a: longitudinal acceleration noise [m/s^2]
- nu_yawdd: yaw acceleration noise [rad/s^2]
"""

import numpy as np

# State vector layout
PX, PY, V, YAW, YAW_RATE = range(5)
STATE_DIM = 5
NOISE_DIM = 2


class CTRVModel:
    """
    CTRV process model driven by acceleration noise.

    Parameters
    ----------
    yaw_rate_threshold : float, optional
        Below this |yaw_rate| the position is integrated along a straight
        line, avoiding the division by yaw_rate (default: 1e-3)
    """

    dim_x = STATE_DIM
    dim_noise = NOISE_DIM
    angle_indices = (YAW,)

    def __init__(self, yaw_rate_threshold=1e-3):
        self.yaw_rate_threshold = yaw_rate_threshold

    def dynamics(self, x_aug, dt):
        """
        Discrete-time dynamics: x_{k+1} = f(x_aug_k, dt)

        Parameters
        ----------
        x_aug : np.ndarray
            Augmented state [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
        dt : float
            Time step in seconds

        Returns
        -------
        np.ndarray
            Next state [px, py, v, yaw, yaw_rate]
        """
        p_x, p_y, v, yaw, yawd, nu_a, nu_yawdd = x_aug

        if abs(yawd) > self.yaw_rate_threshold:
            px_p = p_x + v / yawd * (np.sin(yaw + yawd * dt) - np.sin(yaw))
            py_p = p_y + v / yawd * (np.cos(yaw) - np.cos(yaw + yawd * dt))
        else:
            px_p = p_x + v * dt * np.cos(yaw)
            py_p = p_y + v * dt * np.sin(yaw)

        v_p = v
        yaw_p = yaw + yawd * dt
        yawd_p = yawd

        # Process noise contribution
        half_dt2 = 0.5 * dt * dt
        px_p += half_dt2 * nu_a * np.cos(yaw)
        py_p += half_dt2 * nu_a * np.sin(yaw)
        v_p += nu_a * dt
        yaw_p += half_dt2 * nu_yawdd
        yawd_p += nu_yawdd * dt

        return np.array([px_p, py_p, v_p, yaw_p, yawd_p])

    def propagate(self, x, dt):
        """Noise-free propagation of a plain state (STATE_DIM,)."""
        x_aug = np.zeros(STATE_DIM + NOISE_DIM)
        x_aug[:STATE_DIM] = x
        return self.dynamics(x_aug, dt)
