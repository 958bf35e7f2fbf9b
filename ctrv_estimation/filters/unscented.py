"""
Unscented Kalman Filter (UKF) implementation.

A UKF with an augmented state: process noise enters the sigma-point spread
instead of being added as a covariance term, so the dynamics function
receives the noise components explicitly as f(x_aug, dt).

Uses the Unscented Transform with 2 * n_aug + 1 sigma points.
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy.linalg import block_diag, cholesky

from ..errors import NonPositiveDefiniteCovariance, SingularInnovationCovariance

logger = logging.getLogger(__name__)

# S is treated as singular beyond this condition number
MAX_CONDITION_NUMBER = 1e12


class AugmentedSigmaPoints:
    """
    Symmetric sigma points for an augmented state.

    Generates sigma points and weights for the Unscented Transform of a
    state extended by ``n_noise`` zero-mean process noise components.

    Parameters
    ----------
    n_x : int
        Dimensionality of the state
    n_noise : int
        Number of process noise components appended to the state
    lambda_ : float, optional
        Spreading parameter. Defaults to 3 - n_aug, which is negative for
        n_aug > 3 and gives a negative central weight; the weights still sum
        to one.

    Attributes
    ----------
    n_aug : int
        Augmented dimension n_x + n_noise
    n_sig : int
        Number of sigma points 2 * n_aug + 1
    Wm, Wc : np.ndarray
        Mean and covariance weights (n_sig,). Both use the same values.
    """

    def __init__(self, n_x, n_noise, lambda_=None):
        self.n_x = n_x
        self.n_noise = n_noise
        self.n_aug = n_x + n_noise
        self.n_sig = 2 * self.n_aug + 1

        if lambda_ is None:
            lambda_ = 3.0 - self.n_aug
        if lambda_ + self.n_aug <= 0:
            raise ValueError(
                f"lambda_ + n_aug must be positive, got {lambda_} + {self.n_aug}"
            )
        self._lambda = float(lambda_)
        self._scale = np.sqrt(self._lambda + self.n_aug)

        self.Wm = np.full(self.n_sig, 0.5 / (self.n_aug + self._lambda))
        self.Wm[0] = self._lambda / (self._lambda + self.n_aug)
        self.Wc = self.Wm

    @property
    def lambda_(self):
        return self._lambda

    def augment(self, x, P, noise_cov):
        """
        Build the augmented mean and covariance.

        Parameters
        ----------
        x : np.ndarray
            State mean (n_x,)
        P : np.ndarray
            State covariance (n_x, n_x)
        noise_cov : np.ndarray
            Process noise covariance (n_noise, n_noise)

        Returns
        -------
        x_aug : np.ndarray
            (n_aug,) state followed by zeros
        P_aug : np.ndarray
            (n_aug, n_aug) block diagonal of P and noise_cov
        """
        x_aug = np.zeros(self.n_aug)
        x_aug[:self.n_x] = x
        P_aug = block_diag(P, noise_cov)
        return x_aug, P_aug

    def sigma_points(self, x_aug, P_aug):
        """
        Generate sigma points around (x_aug, P_aug).

        Parameters
        ----------
        x_aug : np.ndarray
            Augmented mean (n_aug,)
        P_aug : np.ndarray
            Augmented covariance (n_aug, n_aug)

        Returns
        -------
        np.ndarray
            Sigma points (n_sig, n_aug). Row 0 is the mean, rows 1..n_aug
            and n_aug+1..2*n_aug are the +/- spreads along the columns of
            the lower Cholesky factor.

        Raises
        ------
        NonPositiveDefiniteCovariance
            If P_aug is not positive definite (or not finite)
        """
        n = self.n_aug

        try:
            L = cholesky(P_aug, lower=True)
        except (np.linalg.LinAlgError, ValueError) as exc:
            raise NonPositiveDefiniteCovariance(
                f"augmented covariance is not positive definite: {exc}"
            ) from exc

        # Columns of L become rows of the spread
        spread = self._scale * L.T

        sigmas = np.empty((self.n_sig, n))
        sigmas[0] = x_aug
        sigmas[1:n + 1] = x_aug + spread
        sigmas[n + 1:] = x_aug - spread

        return sigmas


@dataclass
class UpdateResult:
    """Quantities produced by one measurement update."""
    z_pred: np.ndarray
    innovation: np.ndarray
    S: np.ndarray
    K: np.ndarray
    nis: float


def unscented_mean(sigmas, Wm):
    """Weighted mean of sigma points (n_sig, dim) -> (dim,)."""
    return np.dot(Wm, sigmas)


def unscented_covariance(sigmas, mean, Wc, noise_cov=None, residual_fn=None):
    """
    Compute covariance from sigma points.

    Parameters
    ----------
    sigmas : np.ndarray
        Sigma points (n_sig, dim)
    mean : np.ndarray
        Mean of sigma points (dim,)
    Wc : np.ndarray
        Covariance weights (n_sig,)
    noise_cov : np.ndarray, optional
        Additive noise covariance (dim, dim)
    residual_fn : callable, optional
        residual_fn(a, b) -> a - b with angles normalized

    Returns
    -------
    np.ndarray
        Covariance matrix (dim, dim)
    """
    if residual_fn is None:
        residual_fn = np.subtract

    n = sigmas.shape[1]
    P = np.zeros((n, n))

    for i, s in enumerate(sigmas):
        y = residual_fn(s, mean)
        P += Wc[i] * np.outer(y, y)

    if noise_cov is not None:
        P += noise_cov

    return P


def cross_covariance(sigmas_x, x_mean, sigmas_z, z_mean, Wc,
                     residual_x_fn=None, residual_z_fn=None):
    """
    Compute cross covariance Tc between state and measurement sigma points.

    Parameters
    ----------
    sigmas_x : np.ndarray
        State sigma points (n_sig, n_x)
    x_mean : np.ndarray
        State mean (n_x,)
    sigmas_z : np.ndarray
        Measurement sigma points (n_sig, n_z)
    z_mean : np.ndarray
        Measurement mean (n_z,)
    Wc : np.ndarray
        Covariance weights
    residual_x_fn, residual_z_fn : callable, optional
        Residual functions for state and measurement

    Returns
    -------
    np.ndarray
        Cross covariance matrix (n_x, n_z)
    """
    if residual_x_fn is None:
        residual_x_fn = np.subtract
    if residual_z_fn is None:
        residual_z_fn = np.subtract

    n_x = sigmas_x.shape[1]
    n_z = sigmas_z.shape[1]
    Tc = np.zeros((n_x, n_z))

    for i in range(len(Wc)):
        dx = residual_x_fn(sigmas_x[i], x_mean)
        dz = residual_z_fn(sigmas_z[i], z_mean)
        Tc += Wc[i] * np.outer(dx, dz)

    return Tc


def invert_innovation_covariance(S):
    """
    Invert the innovation covariance S.

    Raises
    ------
    SingularInnovationCovariance
        If S is singular, too ill-conditioned, or not finite
    """
    if not np.all(np.isfinite(S)):
        raise SingularInnovationCovariance("innovation covariance contains non-finite values")

    with np.errstate(divide='ignore', invalid='ignore'):
        cond = np.linalg.cond(S)
    if not cond < MAX_CONDITION_NUMBER:
        raise SingularInnovationCovariance(
            f"innovation covariance is singular (cond={cond:.3e})"
        )

    try:
        return np.linalg.inv(S)
    except np.linalg.LinAlgError as exc:
        raise SingularInnovationCovariance(f"innovation covariance is singular: {exc}") from exc


def kalman_gain(Tc, S_inv):
    """K = Tc S^-1."""
    return Tc @ S_inv


def normalized_innovation_squared(innovation, S_inv):
    """
    Normalized Innovation Squared (NIS) for a single update.

    Chi-square distributed with dim_z degrees of freedom for a consistent
    filter.
    """
    return float(innovation @ S_inv @ innovation)


class UnscentedKalmanFilter:
    """
    Augmented-state Unscented Kalman Filter.

    The user must provide:
    - Dynamics function: f(x_aug, dt) -> x_next, where x_aug holds the
      state followed by the process noise components
    - Measurement function: h(x) -> z for each update

    ``predict`` and ``update`` compute into temporaries and only assign
    ``x``, ``P`` and ``sigmas_f`` once every step succeeded, so a raised
    error leaves the previous belief untouched.

    Attributes
    ----------
    dim_x : int
        Dimension of the state vector
    x : np.ndarray
        State estimate vector
    P : np.ndarray
        State covariance matrix
    Q : np.ndarray
        Covariance of the augmented process noise (n_noise, n_noise)
    sigmas_f : np.ndarray or None
        Predicted sigma points (n_sig, dim_x) from the last predict
    symmetrize : bool
        Replace P by 0.5 * (P + P.T) after each update

    Examples
    --------
    >>> points = AugmentedSigmaPoints(n_x=5, n_noise=2)
    >>> ukf = UnscentedKalmanFilter(dim_x=5, points=points)
    >>> ukf.x = x0
    >>> ukf.P = P0
    >>> ukf.Q = np.diag([std_a**2, std_yawdd**2])
    >>> ukf.predict(dt, fx=ctrv.dynamics)
    >>> result = ukf.update(z, hx=lidar.measurement, R=lidar.R)
    """

    def __init__(self, dim_x, points, symmetrize=True):
        if points.n_x != dim_x:
            raise ValueError(f"points.n_x={points.n_x} does not match dim_x={dim_x}")

        self.dim_x = dim_x
        self.points = points
        self.symmetrize = symmetrize

        self.x = np.zeros(dim_x)
        self.P = np.eye(dim_x)
        self.Q = np.eye(points.n_noise)

        self.sigmas_f = None

        self._residual_x_fn = np.subtract

    def set_residual_fn(self, residual_x_fn):
        """
        Set the state residual function.

        Parameters
        ----------
        residual_x_fn : callable
            Function: residual_x_fn(a, b) -> residual for states
        """
        self._residual_x_fn = residual_x_fn

    def predict(self, dt, fx):
        """
        Predict step of the UKF.

        Parameters
        ----------
        dt : float
            Time step in seconds
        fx : callable
            Dynamics function: fx(x_aug, dt) -> x_next (dim_x,)

        Raises
        ------
        NonPositiveDefiniteCovariance
            If the augmented covariance cannot be factorized
        """
        x_aug, P_aug = self.points.augment(self.x, self.P, self.Q)
        sigmas = self.points.sigma_points(x_aug, P_aug)

        sigmas_f = np.empty((self.points.n_sig, self.dim_x))
        for i, s in enumerate(sigmas):
            sigmas_f[i] = fx(s, dt)

        x = unscented_mean(sigmas_f, self.points.Wm)
        P = unscented_covariance(sigmas_f, x, self.points.Wc,
                                 residual_fn=self._residual_x_fn)

        self.sigmas_f = sigmas_f
        self.x = x
        self.P = P

    def update(self, z, hx, R, residual_z_fn=None):
        """
        Update step of the UKF.

        Parameters
        ----------
        z : np.ndarray
            Measurement vector
        hx : callable
            Measurement function: hx(x) -> z
        R : np.ndarray
            Measurement noise covariance
        residual_z_fn : callable, optional
            Measurement residual function (normalizes angular components)

        Returns
        -------
        UpdateResult
            Predicted measurement, innovation, S, K and NIS

        Raises
        ------
        SingularInnovationCovariance
            If S cannot be inverted
        """
        if self.sigmas_f is None:
            raise RuntimeError("predict() must be called before update()")
        if residual_z_fn is None:
            residual_z_fn = np.subtract

        z = np.asarray(z, dtype=float)

        sigmas_h = np.array([hx(s) for s in self.sigmas_f])
        z_pred = unscented_mean(sigmas_h, self.points.Wm)

        S = unscented_covariance(sigmas_h, z_pred, self.points.Wc, R, residual_z_fn)
        Tc = cross_covariance(self.sigmas_f, self.x, sigmas_h, z_pred, self.points.Wc,
                              self._residual_x_fn, residual_z_fn)

        S_inv = invert_innovation_covariance(S)
        K = kalman_gain(Tc, S_inv)

        innovation = residual_z_fn(z, z_pred)
        nis = normalized_innovation_squared(innovation, S_inv)

        x = self.x + K @ innovation
        P = self.P - K @ S @ K.T
        if self.symmetrize:
            P = 0.5 * (P + P.T)

        self.x = x
        self.P = P

        logger.debug("update: innovation=%s nis=%.4f", innovation, nis)

        return UpdateResult(z_pred=z_pred, innovation=innovation, S=S, K=K, nis=nis)
