"""Pixel-grid geometry utilities.

This module provides the 8-connected adjacency model used by the path
search and the decomposition passes. These functions supplement the
methods on Point with lookups against a UsablePointSet.

The module provides the following functions:
    chebyshev_distance: Grid distance where diagonal steps count as 1.
    manhattan_offset: |dx| + |dy| between two pixels.
    get_neighbours: Occupied 8-neighbours of a pixel, canonical instances.

Example usage:
    Neighbour lookup::

        from track_lib.domain import Point, UsablePointSet
        from track_lib.utils.geometry import get_neighbours

        pool = UsablePointSet([Point(0, 0), Point(1, 1), Point(3, 3)])
        get_neighbours(Point(0, 0), pool)  # [Point(x=1, y=1)]
"""

from __future__ import annotations

from ..domain.geometry import Point, UsablePointSet

# Clockwise from "up"; this order decides BFS enqueue order and tie-breaks
NEIGHBOUR_OFFSETS = (
    (0, -1), (1, -1), (1, 0), (1, 1),
    (0, 1), (-1, 1), (-1, 0), (-1, -1),
)

DIRECT_OFFSETS = ((0, -1), (1, 0), (0, 1), (-1, 0))


def chebyshev_distance(p1: Point, p2: Point) -> int:
    """Chebyshev (chessboard) distance between two pixels."""
    return max(abs(p1.x - p2.x), abs(p1.y - p2.y))


def manhattan_offset(p1: Point, p2: Point) -> int:
    """Manhattan distance; 1 for an orthogonal step, 2 for a diagonal one."""
    return abs(p1.x - p2.x) + abs(p1.y - p2.y)


def get_neighbours(point: Point, usable: UsablePointSet) -> list[Point]:
    """Occupied 8-neighbours of a pixel.

    Args:
        point: Pixel to look around. It does not need to be in usable.
        usable: Pool of pixels that count as occupied.

    Returns:
        Stored instances of the neighbours present in usable, in
        NEIGHBOUR_OFFSETS order.
    """
    neighbours = []
    for dx, dy in NEIGHBOUR_OFFSETS:
        stored = usable.get(point.offset(dx, dy))
        if stored is not None:
            neighbours.append(stored)
    return neighbours

