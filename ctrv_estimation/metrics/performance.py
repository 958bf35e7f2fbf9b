"""
Performance metrics for evaluating the tracker.

Includes RMSE against ground truth and NIS consistency checks.
"""

import numpy as np
from scipy.stats import chi2

from ..models.ctrv import PX, PY, V, YAW


def rmse(estimates, ground_truth, axis=0):
    """
    Root Mean Square Error.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, dim) or (N,)
    ground_truth : np.ndarray
        True states (N, dim) or (N,)
    axis : int, optional
        Axis along which to compute RMSE

    Returns
    -------
    float or np.ndarray
        RMSE value(s)
    """
    estimates = np.asarray(estimates)
    ground_truth = np.asarray(ground_truth)

    squared_errors = (estimates - ground_truth) ** 2
    mean_squared_error = np.mean(squared_errors, axis=axis)

    return np.sqrt(mean_squared_error)


def state_to_cartesian(states):
    """
    Convert CTRV states to [px, py, vx, vy].

    Parameters
    ----------
    states : np.ndarray
        (5,) or (N, 5) states [px, py, v, yaw, yaw_rate]

    Returns
    -------
    np.ndarray
        (4,) or (N, 4) Cartesian position and velocity
    """
    states = np.asarray(states, dtype=float)
    s = np.atleast_2d(states)
    cart = np.column_stack([
        s[:, PX],
        s[:, PY],
        s[:, V] * np.cos(s[:, YAW]),
        s[:, V] * np.sin(s[:, YAW]),
    ])
    return cart[0] if states.ndim == 1 else cart


def chi2_threshold(dof, confidence=0.95):
    """
    Chi-square value exceeded with probability 1 - confidence.

    >>> round(chi2_threshold(2), 3), round(chi2_threshold(3), 3)
    (5.991, 7.815)
    """
    return float(chi2.ppf(confidence, dof))


def nis_consistency(nis_values, dof, confidence=0.95):
    """
    Fraction of NIS values above the chi-square threshold.

    For a consistent filter roughly 1 - confidence of the samples exceed
    the threshold. Much more indicates underestimated uncertainty, much
    less an overly conservative filter.

    Parameters
    ----------
    nis_values : array_like
        NIS samples of one sensor
    dof : int
        Measurement dimension of that sensor
    confidence : float, optional
        Confidence level of the threshold

    Returns
    -------
    dict
        'threshold', 'fraction_above', 'mean' and 'count'
    """
    nis_values = np.asarray(nis_values, dtype=float)
    threshold = chi2_threshold(dof, confidence)

    if nis_values.size == 0:
        return {'threshold': threshold, 'fraction_above': float('nan'),
                'mean': float('nan'), 'count': 0}

    return {
        'threshold': threshold,
        'fraction_above': float(np.mean(nis_values > threshold)),
        'mean': float(np.mean(nis_values)),
        'count': int(nis_values.size),
    }


def compute_tracking_metrics(estimates, ground_truth, nis_history=None):
    """
    Compute all available metrics.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, 5)
    ground_truth : np.ndarray
        True [px, py, vx, vy] (N, 4)
    nis_history : NISHistory, optional
        NIS samples recorded by the estimator

    Returns
    -------
    dict
        Dictionary with computed metrics
    """
    metrics = {}

    cart = state_to_cartesian(estimates)
    metrics['rmse'] = rmse(cart, ground_truth, axis=0)
    metrics['rmse_total'] = float(np.mean(metrics['rmse']))

    if nis_history is not None:
        metrics['nis_lidar'] = nis_consistency(nis_history.lidar, dof=2)
        metrics['nis_radar'] = nis_consistency(nis_history.radar, dof=3)

    return metrics


def print_metrics(metrics, filter_name="UKF"):
    """
    Print metrics in a formatted way.

    Parameters
    ----------
    metrics : dict
        Dictionary of metrics from compute_tracking_metrics
    filter_name : str, optional
        Name of the filter for display
    """
    print(f"\n{filter_name} Performance Metrics")
    print("=" * 50)

    if 'rmse' in metrics:
        px, py, vx, vy = metrics['rmse']
        print(f"RMSE [px, py, vx, vy]: [{px:.4f}, {py:.4f}, {vx:.4f}, {vy:.4f}]")

    for key, label in (('nis_lidar', 'Lidar'), ('nis_radar', 'Radar')):
        if key in metrics:
            stats = metrics[key]
            print(f"NIS {label}: mean {stats['mean']:.2f}, "
                  f"{100 * stats['fraction_above']:.1f}% above {stats['threshold']:.3f} "
                  f"({stats['count']} samples)")

    print("=" * 50)
