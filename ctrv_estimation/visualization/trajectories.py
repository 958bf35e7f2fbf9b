"""
Trajectory visualization.

Plots the estimated track against ground truth and the raw measurements.
"""

import numpy as np
import matplotlib.pyplot as plt

from .covariances import plot_covariance_ellipse


def plot_trajectory(states, ground_truth=None, lidar_points=None, radar_points=None,
                    covariances=None, n_ellipses=10, n_std=2.0,
                    title="Tracked Trajectory", figsize=(10, 8), save_path=None, show=True):
    """
    Plot 2D trajectory of the tracked object.

    Parameters
    ----------
    states : np.ndarray
        Estimated states (N, dim_x) where first two columns are px, py
    ground_truth : np.ndarray, optional
        True trajectory (N, >=2) with px, py in the first two columns
    lidar_points : np.ndarray, optional
        Lidar measurements (M, 2) in Cartesian coordinates
    radar_points : np.ndarray, optional
        Radar measurements (K, 3) as [rho, phi, rho_dot]
    covariances : np.ndarray, optional
        State covariances (N, dim_x, dim_x); position ellipses are drawn
        at ``n_ellipses`` evenly spaced steps
    n_ellipses : int, optional
        Number of ellipses to draw
    n_std : float, optional
        Ellipse size in standard deviations
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size (width, height)
    save_path : str, optional
        Path to save figure. If None, figure is not saved.
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    fig, ax = plt.subplots(figsize=figsize)

    states = np.asarray(states)

    if lidar_points is not None and len(lidar_points):
        lidar_points = np.asarray(lidar_points)
        ax.plot(lidar_points[:, 0], lidar_points[:, 1], 'g.', markersize=4,
                label='Lidar', alpha=0.6)

    if radar_points is not None and len(radar_points):
        radar_points = np.asarray(radar_points)
        ax.plot(radar_points[:, 0] * np.cos(radar_points[:, 1]),
                radar_points[:, 0] * np.sin(radar_points[:, 1]),
                'm.', markersize=4, label='Radar', alpha=0.6)

    if ground_truth is not None:
        ground_truth = np.asarray(ground_truth)
        ax.plot(ground_truth[:, 0], ground_truth[:, 1], 'k--',
                linewidth=1.5, label='Ground Truth', alpha=0.6)

    ax.plot(states[:, 0], states[:, 1], 'b-', linewidth=2, label='UKF Estimate', alpha=0.8)
    ax.plot(states[0, 0], states[0, 1], 'go', markersize=10, label='Start')
    ax.plot(states[-1, 0], states[-1, 1], 'r^', markersize=10, label='End')

    if covariances is not None:
        covariances = np.asarray(covariances)
        for idx in np.linspace(0, len(states) - 1, n_ellipses, dtype=int):
            plot_covariance_ellipse(states[idx, :2], covariances[idx, :2, :2],
                                    n_std=n_std, ax=ax, facecolor='lightblue',
                                    edgecolor='blue', alpha=0.3, linewidth=1)

    ax.set_xlabel('X Position (m)', fontsize=12)
    ax.set_ylabel('Y Position (m)', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis('equal')

    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax
