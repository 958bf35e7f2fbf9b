"""
Exceptions raised by the estimator.

Every numeric failure is reported as a subclass of ``EstimationError`` so a
caller can reject the offending measurement and keep running.
"""

import numpy as np


class EstimationError(Exception):
    """Base class for all estimator errors."""


class UnknownSensorError(EstimationError, ValueError):
    """A measurement carries a sensor type the estimator has no model for."""


class InitializationError(UnknownSensorError):
    """The first measurement cannot initialize the state."""


class TimestampOrderError(EstimationError, ValueError):
    """A measurement arrived with a timestamp older than the previous one."""


class NonPositiveDefiniteCovariance(EstimationError, np.linalg.LinAlgError):
    """Cholesky factorization of the augmented covariance failed."""


class SingularInnovationCovariance(EstimationError, np.linalg.LinAlgError):
    """The innovation covariance S cannot be inverted."""


class DegenerateRadarGeometry(EstimationError, ArithmeticError):
    """A sigma point sits too close to the radar for range-rate to be defined."""
