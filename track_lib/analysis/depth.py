"""Relative interaction depth from pixel arrival times.

Charge created deeper in the sensor drifts longer before it is collected,
so a pixel's arrival time relative to the first pixel of the cluster maps
to a depth. ZCalculator applies the drift model with the sensor parameters
of a DriftConfig and returns 3D coordinates for a cluster.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..domain.geometry import Point


@dataclass(frozen=True)
class DriftConfig:
    """Sensor parameters of the drift model.

    Attributes:
        thickness: Sensor thickness in micrometres.
        mobility: Carrier mobility.
        depletion_voltage: Full depletion voltage in volts.
        bias_voltage: Applied bias voltage in volts.
    """
    thickness: float = 500.0
    mobility: float = 45.0
    depletion_voltage: float = 110.0
    bias_voltage: float = 230.0


class ZCalculator:
    """Computes relative depth with respect to the earliest pixel."""

    def __init__(self, config: DriftConfig | None = None):
        self.config = config or DriftConfig()

    def calculate_z(self, point: Point, first_toa: float) -> float:
        """Depth of one pixel given the cluster's first arrival time."""
        cfg = self.config
        relative_toa = point.toa - first_toa
        scale = cfg.thickness / (2 * cfg.depletion_voltage) * (cfg.depletion_voltage + cfg.bias_voltage)
        exponent = -2 * cfg.depletion_voltage * cfg.mobility * relative_toa / cfg.thickness ** 2
        return scale * (1 - math.exp(exponent))

    def transform_points(self, points: Sequence[Point]) -> np.ndarray:
        """3D coordinates of a cluster.

        Returns:
            float32 array of shape (N, 3) with columns x, y, z. Empty input
            gives an array of shape (0, 3).
        """
        if len(points) == 0:
            return np.zeros((0, 3), dtype=np.float32)
        first_toa = min(p.toa for p in points)
        return np.array(
            [(p.x, p.y, self.calculate_z(p, first_toa)) for p in points],
            dtype=np.float32,
        )
