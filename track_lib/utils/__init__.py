"""Utility functions for cluster branch analysis.

Geometry utilities:
    chebyshev_distance: Grid distance where diagonal steps count as 1.
    get_neighbours: Occupied 8-neighbours of a pixel.
    manhattan_offset: Step cost used to prefer orthogonal moves.

Example usage:
    from track_lib.utils import get_neighbours
    neighbours = get_neighbours(point, usable_points)
"""

from .geometry import (
    DIRECT_OFFSETS,
    NEIGHBOUR_OFFSETS,
    chebyshev_distance,
    get_neighbours,
    manhattan_offset,
)

__all__ = [
    'NEIGHBOUR_OFFSETS', 'DIRECT_OFFSETS',
    'chebyshev_distance', 'manhattan_offset',
    'get_neighbours',
]
