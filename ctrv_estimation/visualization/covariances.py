"""
Covariance and consistency visualization.

Functions for plotting uncertainty ellipses and NIS against its
chi-square threshold.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Ellipse

from ..metrics.performance import chi2_threshold


def plot_covariance_ellipse(mean, cov, n_std=3.0, ax=None, **kwargs):
    """
    Plot covariance ellipse for a 2D distribution.

    Parameters
    ----------
    mean : array-like
        Mean of distribution [x, y]
    cov : np.ndarray
        2x2 covariance matrix
    n_std : float, optional
        Number of standard deviations for ellipse (default: 3-sigma)
    ax : matplotlib.axes.Axes, optional
        Axes to plot on. If None, uses the current axes.
    **kwargs : dict
        Additional arguments passed to Ellipse patch

    Returns
    -------
    matplotlib.patches.Ellipse
        The ellipse patch object
    """
    if ax is None:
        ax = plt.gca()

    mean = np.asarray(mean)
    cov = np.asarray(cov)

    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    eigenvalues = np.maximum(eigenvalues, 0.0)

    # eigh sorts ascending, so the last eigenvector is the major axis
    angle = np.degrees(np.arctan2(eigenvectors[1, 1], eigenvectors[0, 1]))
    width, height = 2 * n_std * np.sqrt(eigenvalues[::-1])

    ellipse = Ellipse(xy=mean, width=width, height=height, angle=angle, **kwargs)
    ax.add_patch(ellipse)

    return ellipse


def plot_nis(nis_values, dim_z, confidence=0.95, label='NIS',
             title="NIS Consistency Test", ax=None,
             figsize=(12, 6), save_path=None, show=True):
    """
    Plot Normalized Innovation Squared (NIS) with its chi-square threshold.

    Parameters
    ----------
    nis_values : np.ndarray
        NIS values over time (N,)
    dim_z : int
        Dimension of measurement vector (2 lidar, 3 radar)
    confidence : float, optional
        Confidence level of the threshold line
    label : str, optional
        Legend label of the NIS curve
    title : str, optional
        Plot title
    ax : matplotlib.axes.Axes, optional
        Axes to draw on. If None, creates a new figure.
    figsize : tuple, optional
        Figure size
    save_path : str, optional
        Path to save figure
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    steps = np.arange(len(nis_values))
    threshold = chi2_threshold(dim_z, confidence)

    ax.plot(steps, nis_values, 'b-', linewidth=1.0, alpha=0.8, label=label)
    ax.axhline(threshold, color='r', linestyle='--', linewidth=1.5,
               label=f'$\\chi^2_{{{dim_z}}}$ {confidence*100:.0f}% ({threshold:.3f})')

    ax.set_xlabel('Update', fontsize=12)
    ax.set_ylabel('NIS', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax
