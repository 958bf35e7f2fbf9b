"""
Reading measurement logs and writing results.

Log format, one measurement per line, whitespace separated:

    L  px  py  timestamp  gt_px  gt_py  gt_vx  gt_vy  [gt_yaw  gt_yawrate]
    R  rho phi rho_dot  timestamp  gt_px  gt_py  gt_vx  gt_vy  [gt_yaw  gt_yawrate]

Timestamps are in microseconds. Ground truth columns are optional.
"""

import csv
import logging

import numpy as np
import pandas as pd

from ..measurement import Measurement, SensorType

logger = logging.getLogger(__name__)

_MAX_COLUMNS = 11
_GT_DIM = 4


def _split_fields(sensor_type, fields):
    """Split the numeric fields of one log row into values, timestamp, ground truth."""
    dim_z = 2 if sensor_type is SensorType.LIDAR else 3
    if len(fields) < dim_z + 1:
        raise ValueError(
            f"{sensor_type.name} line needs {dim_z} values and a timestamp, got {len(fields)} fields"
        )

    values = np.asarray(fields[:dim_z], dtype=float)
    timestamp = int(round(float(fields[dim_z])))
    gt = np.asarray(fields[dim_z + 1:dim_z + 1 + _GT_DIM], dtype=float)
    ground_truth = gt if gt.size == _GT_DIM and np.all(np.isfinite(gt)) else None

    return values, timestamp, ground_truth


def parse_measurement_line(line):
    """
    Parse a single log line into a Measurement.

    Parameters
    ----------
    line : str
        One line of the log

    Returns
    -------
    Measurement

    Raises
    ------
    ValueError
        If the sensor letter is unknown or fields are missing
    """
    tokens = line.split()
    if not tokens:
        raise ValueError("Empty measurement line")

    sensor_type = SensorType.coerce(tokens[0])
    values, timestamp, ground_truth = _split_fields(sensor_type, [float(t) for t in tokens[1:]])

    return Measurement(sensor_type, timestamp, values, ground_truth)


def load_measurements(filename, nrows=None):
    """
    Load a measurement log into a list of Measurements.

    Parameters
    ----------
    filename : str or Path
        Path to the log file
    nrows : int, optional
        Number of lines to read

    Returns
    -------
    list of Measurement
        In file order
    """
    df = pd.read_csv(
        filename,
        sep=r"\s+",
        engine="python",
        header=None,
        names=list(range(_MAX_COLUMNS)),
        nrows=nrows,
    )

    measurements = []
    for row in df.itertuples(index=False):
        sensor_type = SensorType.coerce(row[0])
        fields = [f for f in row[1:] if not pd.isna(f)]
        values, timestamp, ground_truth = _split_fields(sensor_type, fields)
        measurements.append(Measurement(sensor_type, timestamp, values, ground_truth))

    logger.info("Loaded %d measurements from %s", len(measurements), filename)

    return measurements


def write_estimates_csv(path, timestamps, estimates, ground_truth=None):
    """
    Save state estimates, optionally next to ground truth.

    Parameters
    ----------
    path : str or Path
        Output CSV path
    timestamps : array_like
        (N,) timestamps in microseconds
    estimates : np.ndarray
        (N, 5) states [px, py, v, yaw, yaw_rate]
    ground_truth : np.ndarray, optional
        (N, 4) true [px, py, vx, vy]
    """
    df = pd.DataFrame(np.asarray(estimates), columns=['px', 'py', 'v', 'yaw', 'yaw_rate'])
    df.insert(0, 'timestamp', np.asarray(timestamps, dtype=np.int64))

    if ground_truth is not None:
        gt = pd.DataFrame(np.asarray(ground_truth), columns=['gt_px', 'gt_py', 'gt_vx', 'gt_vy'])
        df = pd.concat([df, gt], axis=1)

    df.to_csv(path, index=False)


def write_nis_csv(path, nis_history):
    """
    Save NIS values as rows of Num,Radar,Lidar.

    Parameters
    ----------
    path : str or Path
        Output CSV path
    nis_history : NISHistory
        Recorded NIS values; missing entries are written empty
    """
    with open(path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['Num', 'Radar', 'Lidar'])
        for index, radar, lidar in nis_history.rows():
            writer.writerow([
                index,
                '' if np.isnan(radar) else f"{radar:.6f}",
                '' if np.isnan(lidar) else f"{lidar:.6f}",
            ])
