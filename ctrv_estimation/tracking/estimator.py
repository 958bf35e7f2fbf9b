"""
Lidar/radar fusion estimator for a single object.

Wraps the augmented UKF with the CTRV motion model and the two sensor
models, and turns a stream of timestamped measurements into
predict/update calls.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..common.residuals import make_residual_fn
from ..config import UKFConfig
from ..errors import (EstimationError, InitializationError, TimestampOrderError,
                      UnknownSensorError)
from ..filters.unscented import AugmentedSigmaPoints, UnscentedKalmanFilter
from ..measurement import SensorType
from ..metrics.nis import NISHistory
from ..models.ctrv import CTRVModel, STATE_DIM, NOISE_DIM
from ..models.sensors import LidarModel, RadarModel

logger = logging.getLogger(__name__)


class ProcessStatus(Enum):
    """Outcome of processing one measurement."""
    INITIALIZED = 'initialized'
    UPDATED = 'updated'
    SKIPPED = 'skipped'
    REJECTED = 'rejected'


@dataclass
class ProcessResult:
    """
    What ``StateEstimator.process_measurement`` did with a measurement.

    Attributes
    ----------
    status : ProcessStatus
        INITIALIZED, UPDATED, SKIPPED (sensor disabled) or REJECTED
    sensor_type : SensorType
        Sensor of the measurement
    dt : float
        Prediction interval in seconds (0 for the first measurement)
    nis : float or None
        NIS of the update, if one was applied
    error : EstimationError or None
        Why the measurement was rejected
    """
    status: ProcessStatus
    sensor_type: SensorType
    dt: float = 0.0
    nis: Optional[float] = None
    error: Optional[EstimationError] = None

    @property
    def accepted(self):
        return self.status in (ProcessStatus.INITIALIZED, ProcessStatus.UPDATED)


class StateEstimator:
    """
    CTRV Unscented Kalman Filter fusing lidar and radar measurements.

    State: x = [px, py, v, yaw, yaw_rate]

    The first measurement initializes the state from the sensor model.
    Every later measurement predicts the state to its timestamp and then
    applies the update of its sensor. Numeric failures reject the
    measurement: a failed prediction leaves the belief and the clock
    unchanged, a failed update keeps the predicted belief.

    Parameters
    ----------
    config : UKFConfig, optional
        Noise parameters and options. Defaults to ``UKFConfig()``.
    nis_sink : NISHistory or callable, optional
        Receives every NIS value as nis_sink(sensor_type, nis). Defaults
        to a ``NISHistory`` bounded by ``config.nis_maxlen``.

    Examples
    --------
    >>> estimator = StateEstimator()
    >>> for measurement in measurements:
    ...     result = estimator.process_measurement(measurement)
    >>> estimator.x, estimator.P
    >>> estimator.nis.rows()
    """

    def __init__(self, config=None, nis_sink=None):
        self.config = config if config is not None else UKFConfig()
        cfg = self.config

        self.motion_model = CTRVModel(yaw_rate_threshold=cfg.yaw_rate_threshold)
        self.sensor_models = {
            SensorType.LIDAR: LidarModel.from_config(cfg),
            SensorType.RADAR: RadarModel.from_config(cfg),
        }

        self.points = AugmentedSigmaPoints(n_x=STATE_DIM, n_noise=NOISE_DIM)
        self.ukf = UnscentedKalmanFilter(dim_x=STATE_DIM, points=self.points,
                                         symmetrize=cfg.symmetrize_covariance)
        self.ukf.Q = cfg.process_noise_cov()
        self.ukf.set_residual_fn(make_residual_fn(self.motion_model.angle_indices))

        if nis_sink is None:
            nis_sink = NISHistory(maxlen=cfg.nis_maxlen)
        self._nis_sink = nis_sink

        self._initialized = False
        self._time_us = None

    @property
    def x(self):
        """State estimate [px, py, v, yaw, yaw_rate]."""
        return self.ukf.x

    @property
    def P(self):
        """State covariance (5, 5)."""
        return self.ukf.P

    @property
    def nis(self):
        """The NISHistory sink, or None when a plain callable was supplied."""
        return self._nis_sink if isinstance(self._nis_sink, NISHistory) else None

    @property
    def is_initialized(self):
        return self._initialized

    @property
    def time_us(self):
        """Timestamp of the last processed measurement in microseconds."""
        return self._time_us

    def reset(self):
        """
        Return to the uninitialized state.

        Configuration and the NIS sink are kept; clear the sink separately
        if its history should start over.
        """
        self._initialized = False
        self._time_us = None
        self.ukf.x = np.zeros(STATE_DIM)
        self.ukf.P = np.eye(STATE_DIM)
        self.ukf.sigmas_f = None

    def sensor_enabled(self, sensor_type):
        if sensor_type is SensorType.LIDAR:
            return self.config.use_laser
        return self.config.use_radar

    def process_measurement(self, measurement):
        """
        Initialize from, or predict and update with, one measurement.

        Parameters
        ----------
        measurement : Measurement
            Sensor type, timestamp in microseconds and raw values

        Returns
        -------
        ProcessResult
            What happened to the measurement

        Raises
        ------
        InitializationError
            If the first measurement has an unknown sensor type or values
            of the wrong shape or not finite
        ValueError
            If a later measurement has values of the wrong shape or not finite
        UnknownSensorError
            If a later measurement has an unknown sensor type
        TimestampOrderError
            If the timestamp is older than the previous one
        EstimationError
            Numeric failures, only when ``config.raise_on_reject`` is set
        """
        sensor_type = self._sensor_type(measurement)
        model = self.sensor_models[sensor_type]
        z = np.asarray(measurement.values, dtype=float)

        message = None
        if z.shape != (model.dim_z,):
            message = (f"{sensor_type.name} measurement must have shape "
                       f"({model.dim_z},), got {z.shape}")
        elif not np.all(np.isfinite(z)):
            message = f"{sensor_type.name} measurement contains non-finite values: {z}"
        if message is not None:
            if not self._initialized:
                raise InitializationError(message)
            raise ValueError(message)

        if not self._initialized:
            self._initialize(sensor_type, model, z, measurement.timestamp)
            return ProcessResult(ProcessStatus.INITIALIZED, sensor_type)

        if measurement.timestamp < self._time_us:
            raise TimestampOrderError(
                f"timestamp {measurement.timestamp} is older than {self._time_us}"
            )

        if not self.sensor_enabled(sensor_type):
            logger.debug("Skipping %s measurement at %d (sensor disabled)",
                         sensor_type.name, measurement.timestamp)
            return ProcessResult(ProcessStatus.SKIPPED, sensor_type)

        dt = (measurement.timestamp - self._time_us) / 1000000.0

        try:
            self.predict(dt)
        except EstimationError as exc:
            if self.config.raise_on_reject:
                raise
            return self._rejected(sensor_type, dt, exc, stage='prediction')

        self._time_us = measurement.timestamp

        try:
            update = self.ukf.update(z, model.measurement, model.R, model.residual)
        except EstimationError as exc:
            if self.config.raise_on_reject:
                raise
            return self._rejected(sensor_type, dt, exc, stage='update')

        self._nis_sink(sensor_type, update.nis)
        logger.debug("%s update: dt=%.4f s, NIS=%.4f", sensor_type.name, dt, update.nis)

        return ProcessResult(ProcessStatus.UPDATED, sensor_type, dt=dt, nis=update.nis)

    def predict(self, dt):
        """
        Predict the state ``dt`` seconds ahead with the CTRV model.

        Raises
        ------
        NonPositiveDefiniteCovariance
            If the augmented covariance cannot be factorized
        """
        if not self._initialized:
            raise RuntimeError("Estimator must be initialized before predict()")
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        self.ukf.predict(dt, self.motion_model.dynamics)

    def _sensor_type(self, measurement):
        try:
            return SensorType.coerce(measurement.sensor_type)
        except ValueError as exc:
            if not self._initialized:
                raise InitializationError(
                    f"Cannot initialize from sensor type {measurement.sensor_type!r}"
                ) from exc
            raise UnknownSensorError(str(exc)) from exc

    def _initialize(self, sensor_type, model, z, timestamp):
        x0, P0 = model.initial_belief(z)
        self.ukf.x = x0
        self.ukf.P = P0
        self.ukf.sigmas_f = None
        self._time_us = int(timestamp)
        self._initialized = True

        logger.info("Initialized from %s measurement at %d: x=%s",
                    sensor_type.name, self._time_us, np.array2string(x0, precision=3))

    def _rejected(self, sensor_type, dt, exc, stage):
        logger.warning("Rejected %s measurement during %s: %s",
                       sensor_type.name, stage, exc)
        return ProcessResult(ProcessStatus.REJECTED, sensor_type, dt=dt, error=exc)
