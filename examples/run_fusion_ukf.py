"""
Lidar/Radar Fusion Example

Runs the CTRV Unscented Kalman Filter over a measurement log (or a
simulated scenario), prints RMSE and NIS consistency, and saves the
estimates, the NIS table and plots.
"""

import logging
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from ctrv_estimation import StateEstimator, UKFConfig, SensorType, ProcessStatus
from ctrv_estimation.data import (load_measurements, simulate_ctrv_track,
                                  write_estimates_csv, write_nis_csv)
from ctrv_estimation.metrics import compute_tracking_metrics, print_metrics
from ctrv_estimation.visualization import plot_trajectory, plot_nis

# ============================================================================
# CONFIGURATION - Data Paths
# ============================================================================
USE_LOG_FILE = False  # Set to True to read MEASUREMENTS_PATH instead of simulating

BASE_DIR = Path(__file__).parent.parent

# Input log (L/R lines with ground truth)
MEASUREMENTS_PATH = BASE_DIR / 'data' / 'obj_pose-laser-radar-synthetic-input.txt'

# Output results path
RESULTS_PATH = BASE_DIR / 'results' / 'fusion_ukf'

# Simulation parameters
N_STEPS = 500
DT = 0.05
SEED = 7
# ============================================================================


def run_fusion_example():
    """Run the fusion UKF over a log file or a simulated track."""

    print("\n" + "=" * 60)
    print("Unscented Kalman Filter Example - Lidar/Radar Fusion (CTRV)")
    print("=" * 60 + "\n")

    config = UKFConfig()

    if USE_LOG_FILE:
        print(f"Loading measurements from {MEASUREMENTS_PATH}...")
        measurements = load_measurements(MEASUREMENTS_PATH)
    else:
        print("Using simulated measurements...")
        scenario = simulate_ctrv_track(n_steps=N_STEPS, dt=DT, config=config,
                                       rng=np.random.default_rng(SEED))
        measurements = scenario['measurements']

    estimator = StateEstimator(config)

    N = len(measurements)
    timestamps = np.zeros(N, dtype=np.int64)
    estimates = np.zeros((N, 5))
    covariances = np.zeros((N, 5, 5))
    rejected = 0

    print("Running UKF...")
    for k, measurement in enumerate(measurements):
        result = estimator.process_measurement(measurement)
        if result.status is ProcessStatus.REJECTED:
            rejected += 1

        timestamps[k] = measurement.timestamp
        estimates[k] = estimator.x
        covariances[k] = estimator.P

        if (k + 1) % 200 == 0:
            print(f"  Processed {k+1}/{N} measurements...")

    print(f"UKF complete! ({rejected} measurements rejected)\n")

    ground_truth = None
    if all(m.ground_truth is not None for m in measurements):
        ground_truth = np.array([m.ground_truth for m in measurements])
        metrics = compute_tracking_metrics(estimates, ground_truth, estimator.nis)
        print_metrics(metrics, filter_name="CTRV UKF")

    # Results
    results_dir = RESULTS_PATH
    results_dir.mkdir(parents=True, exist_ok=True)

    estimates_path = results_dir / 'ukf_estimates.csv'
    write_estimates_csv(estimates_path, timestamps, estimates, ground_truth)
    print(f"  Saved: {estimates_path}")

    nis_path = results_dir / 'ukf_nis.csv'
    write_nis_csv(nis_path, estimator.nis)
    print(f"  Saved: {nis_path}")

    print("\nGenerating plots...")
    lidar_points = np.array([m.values for m in measurements
                             if m.sensor_type is SensorType.LIDAR]).reshape(-1, 2)
    radar_points = np.array([m.values for m in measurements
                             if m.sensor_type is SensorType.RADAR]).reshape(-1, 3)

    fig1, _ = plot_trajectory(estimates, ground_truth=ground_truth,
                              lidar_points=lidar_points, radar_points=radar_points,
                              covariances=covariances, show=False,
                              save_path=results_dir / 'ukf_trajectory.png')
    print(f"  Saved: {results_dir / 'ukf_trajectory.png'}")

    fig2, axes = plt.subplots(2, 1, figsize=(10, 8))
    plot_nis(estimator.nis.lidar, dim_z=2, label='Lidar NIS', title='Lidar NIS',
             ax=axes[0], show=False)
    plot_nis(estimator.nis.radar, dim_z=3, label='Radar NIS', title='Radar NIS',
             ax=axes[1], show=False, save_path=results_dir / 'ukf_nis.png')
    print(f"  Saved: {results_dir / 'ukf_nis.png'}")

    plt.close(fig1)
    plt.close(fig2)

    print("\n" + "=" * 60)
    print("Fusion Example Complete!")
    print(f"Results saved to '{results_dir}' directory")
    print("=" * 60)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    run_fusion_example()
