"""
Normalized Innovation Squared (NIS) history.

The estimator hands every NIS sample to a sink; ``NISHistory`` is the
default sink. It keeps one sequence per sensor, optionally bounded, and can
forward each sample to a callback for streaming consumers.
"""

import math
from collections import deque
from itertools import zip_longest

import numpy as np

from ..measurement import SensorType


class NISHistory:
    """
    Per-sensor NIS sequences.

    Parameters
    ----------
    maxlen : int, optional
        Keep only the last ``maxlen`` values per sensor. Unbounded if None.
    callback : callable, optional
        Called as callback(sensor_type, nis) for every recorded value

    Examples
    --------
    >>> history = NISHistory(maxlen=1000)
    >>> history.record(SensorType.RADAR, 2.4)
    >>> history.radar
    array([2.4])
    """

    def __init__(self, maxlen=None, callback=None):
        self.maxlen = maxlen
        self.callback = callback
        self._values = {sensor: deque(maxlen=maxlen) for sensor in SensorType}

    def record(self, sensor_type, nis):
        """Append one NIS value for ``sensor_type``."""
        sensor_type = SensorType.coerce(sensor_type)
        self._values[sensor_type].append(float(nis))
        if self.callback is not None:
            self.callback(sensor_type, nis)

    __call__ = record

    def values(self, sensor_type):
        """NIS values of one sensor, oldest first."""
        return np.array(self._values[SensorType.coerce(sensor_type)])

    @property
    def lidar(self):
        return self.values(SensorType.LIDAR)

    @property
    def radar(self):
        return self.values(SensorType.RADAR)

    def count(self, sensor_type):
        return len(self._values[SensorType.coerce(sensor_type)])

    def rows(self):
        """
        Pair radar and lidar values by index.

        Returns
        -------
        list of tuple
            (index, radar_nis, lidar_nis) rows. When one sensor has fewer
            samples its missing entries are NaN.
        """
        pairs = zip_longest(self._values[SensorType.RADAR],
                            self._values[SensorType.LIDAR],
                            fillvalue=math.nan)
        return [(i, radar, lidar) for i, (radar, lidar) in enumerate(pairs)]

    def clear(self):
        for values in self._values.values():
            values.clear()

    def __len__(self):
        return sum(len(values) for values in self._values.values())
