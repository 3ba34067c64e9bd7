"""Junction (cross point) classification.

A pixel is a cross point when the number of its occupied neighbours,
counted under a NeighbourCountMode, satisfies a predicate. The default
filter marks pixels with at least three arms as junctions.

Example usage:
    Find junctions of a skeleton::

        from track_lib.analysis.crosspoints import NeighbourCountFilter

        junction_filter = NeighbourCountFilter()
        junctions = junction_filter.process(skeleton.points)
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, List

from ..config import JUNCTION_NEIGHBOUR_COUNT
from ..domain.geometry import Point, UsablePointSet
from ..utils.geometry import DIRECT_OFFSETS, NEIGHBOUR_OFFSETS


class NeighbourCountMode(Enum):
    """How neighbours of a pixel are counted.

        ALL: Occupied 8-neighbours.
        DIRECT: Occupied 4-neighbours (no diagonals).
        YPSILON: Separate occupied runs around the 8-ring, i.e. the number
            of arms leaving the pixel. A pixel inside a Y counts 3 even when
            an arm touches it with two adjacent pixels.
    """
    ALL = 'all'
    DIRECT = 'direct'
    YPSILON = 'ypsilon'


def _count_all(point: Point, pool: UsablePointSet) -> int:
    return sum(1 for dx, dy in NEIGHBOUR_OFFSETS if point.offset(dx, dy) in pool)


def _count_direct(point: Point, pool: UsablePointSet) -> int:
    return sum(1 for dx, dy in DIRECT_OFFSETS if point.offset(dx, dy) in pool)


def _count_runs(point: Point, pool: UsablePointSet) -> int:
    ring = [point.offset(dx, dy) in pool for dx, dy in NEIGHBOUR_OFFSETS]
    if all(ring):
        return 1
    return sum(1 for i in range(len(ring)) if ring[i] and not ring[i - 1])


_COUNTERS = {
    NeighbourCountMode.ALL: _count_all,
    NeighbourCountMode.DIRECT: _count_direct,
    NeighbourCountMode.YPSILON: _count_runs,
}


class NeighbourCountFilter:
    """Selects pixels whose neighbour count satisfies a predicate.

    Attributes:
        predicate: Callable taking the neighbour count, True for junctions.
        mode: NeighbourCountMode used to count neighbours.
    """

    def __init__(self,
                 predicate: Callable[[int], bool] | None = None,
                 mode: NeighbourCountMode = NeighbourCountMode.YPSILON):
        self.predicate = predicate or (lambda count: count >= JUNCTION_NEIGHBOUR_COUNT)
        self.mode = mode

    def count(self, point: Point, pool: UsablePointSet) -> int:
        """Neighbour count of point inside pool under this filter's mode."""
        return _COUNTERS[self.mode](point, pool)

    def process(self, points: Iterable[Point]) -> List[Point]:
        """Junction pixels of a point set.

        Args:
            points: Pixels to classify; they also form the occupancy map.

        Returns:
            Junction pixels in the order they appear in points. The order is
            stable so it can drive child-carve sequencing.
        """
        pool = UsablePointSet(points)
        return [point for point in pool if self.predicate(self.count(point, pool))]
