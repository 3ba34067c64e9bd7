"""Energy aggregation and energy-weighted center selection.

This module provides the two energy collaborators of the decomposition:
    EnergyCalculator: Sums the deposited energy of a set of pixels.
    EnergyCenterFinder: Picks the seed pixel of the decomposition, the
        energy-weighted centroid of the original cluster snapped onto the
        nearest skeleton pixel.

Example usage:
    Seed selection::

        from track_lib.analysis.energy import EnergyCenterFinder

        finder = EnergyCenterFinder()
        center = finder.calc_center_point(skeleton.points, cluster.points)
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from ..domain.geometry import Point

logger = logging.getLogger(__name__)


class EnergyCalculator:
    """Aggregates pixel energies."""

    def calc_total_energy(self, points: Iterable[Point]) -> float:
        """Total energy of the given pixels."""
        energies = np.fromiter((p.energy for p in points), dtype=np.float64)
        return float(energies.sum())


class EnergyCenterFinder:
    """Selects the seed pixel for branch decomposition."""

    def calc_centroid(self, points: Sequence[Point]) -> np.ndarray:
        """Energy-weighted centroid of points as a float (x, y) array.

        Falls back to the plain centroid when the total energy is not
        positive (uncalibrated data).

        Raises:
            ValueError: If points is empty.
        """
        if len(points) == 0:
            raise ValueError("Cannot compute the centroid of an empty point set")
        coords = np.array([(p.x, p.y) for p in points], dtype=np.float64)
        weights = np.array([p.energy for p in points], dtype=np.float64)
        if weights.sum() <= 0:
            return coords.mean(axis=0)
        return np.average(coords, axis=0, weights=weights)

    def calc_center_point(self, skeleton_points: Sequence[Point],
                          origin_points: Optional[Sequence[Point]] = None) -> Point:
        """Skeleton pixel nearest to the energy centroid.

        Args:
            skeleton_points: Candidate pixels; the result is one of them.
            origin_points: Full cluster used for the weighted centroid.
                Defaults to skeleton_points.

        Returns:
            The stored skeleton Point closest to the centroid. Ties resolve
            to the earliest pixel in skeleton_points.

        Raises:
            ValueError: If skeleton_points is empty.
        """
        if len(skeleton_points) == 0:
            raise ValueError("Cannot select a center from an empty skeleton")
        if not origin_points:
            origin_points = skeleton_points

        centroid = self.calc_centroid(origin_points)
        tree = cKDTree(np.array([(p.x, p.y) for p in skeleton_points], dtype=np.float64))
        distance, index = tree.query(centroid)
        # cKDTree does not promise which tied neighbour it returns
        candidates = tree.query_ball_point(centroid, r=distance + 1e-9)
        index = min(candidates) if candidates else int(index)

        center = skeleton_points[index]
        logger.debug("Center %s (centroid %.2f, %.2f)", center, centroid[0], centroid[1])
        return center
