"""
Synthetic lidar/radar scenarios for a CTRV target.

Generates a ground-truth CTRV trajectory driven by random acceleration
noise and alternating noisy lidar and radar measurements of it.
"""

import numpy as np

from ..common.angles import normalize_angle
from ..config import UKFConfig
from ..measurement import Measurement, SensorType
from ..metrics.performance import state_to_cartesian
from ..models.ctrv import CTRVModel, STATE_DIM
from ..models.sensors import LidarModel, RadarModel

DEFAULT_START_US = 1477010443000000


def simulate_ctrv_track(n_steps=200, dt=0.05, x0=None, config=None, rng=None,
                        process_noise=True, measurement_noise=True,
                        start_us=DEFAULT_START_US):
    """
    Simulate a CTRV target observed alternately by lidar and radar.

    Parameters
    ----------
    n_steps : int
        Number of measurements
    dt : float
        Time between consecutive measurements in seconds
    x0 : array_like, optional
        Initial state [px, py, v, yaw, yaw_rate].
        If None, uses [5.0, 1.0, 3.0, 0.3, 0.15].
    config : UKFConfig, optional
        Source of the process and sensor noise levels
    rng : np.random.Generator, optional
        Random number generator (default: np.random.default_rng())
    process_noise : bool
        Drive the trajectory with acceleration noise std_a / std_yawdd
    measurement_noise : bool
        Add sensor noise to the measurements
    start_us : int
        Timestamp of the first measurement in microseconds

    Returns
    -------
    dict
        Dictionary containing:
        - time_us: (N,) timestamps in microseconds
        - states: (N, 5) true CTRV states
        - ground_truth: (N, 4) true [px, py, vx, vy]
        - measurements: list of N Measurements, LIDAR first, alternating,
          each carrying its ground truth
    """
    if config is None:
        config = UKFConfig()
    if rng is None:
        rng = np.random.default_rng()
    if x0 is None:
        x0 = np.array([5.0, 1.0, 3.0, 0.3, 0.15])

    ctrv = CTRVModel(yaw_rate_threshold=config.yaw_rate_threshold)
    lidar = LidarModel.from_config(config)
    radar = RadarModel.from_config(config)

    dt_us = int(round(dt * 1e6))
    time_us = start_us + dt_us * np.arange(n_steps, dtype=np.int64)

    states = np.zeros((n_steps, STATE_DIM))
    states[0] = x0
    for k in range(1, n_steps):
        nu = np.zeros(2)
        if process_noise:
            nu = rng.normal(0.0, [config.std_a, config.std_yawdd])
        states[k] = ctrv.dynamics(np.concatenate([states[k - 1], nu]), dt)

    ground_truth = state_to_cartesian(states)

    measurements = []
    for k in range(n_steps):
        if k % 2 == 0:
            sensor_type, model = SensorType.LIDAR, lidar
        else:
            sensor_type, model = SensorType.RADAR, radar

        z = model.measurement(states[k])
        if measurement_noise:
            z = z + rng.multivariate_normal(np.zeros(model.dim_z), model.R)
        if sensor_type is SensorType.RADAR:
            z[1] = normalize_angle(z[1])

        measurements.append(Measurement(sensor_type, int(time_us[k]), z, ground_truth[k]))

    return {
        'time_us': time_us,
        'states': states,
        'ground_truth': ground_truth,
        'measurements': measurements,
    }
