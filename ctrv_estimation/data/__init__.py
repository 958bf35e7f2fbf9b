"""
Measurement logs and synthetic scenarios.
"""

from .io import parse_measurement_line, load_measurements, write_estimates_csv, write_nis_csv
from .simulation import simulate_ctrv_track

__all__ = [
    'parse_measurement_line',
    'load_measurements',
    'write_estimates_csv',
    'write_nis_csv',
    'simulate_ctrv_track',
]
