"""Longest-path search over an 8-connected pixel pool.

The search labels every pixel reachable from a source with its
breadth-first distance and takes the last pixel dequeued as the far end.
This is a heuristic: on tree-shaped pools it finds a farthest pixel, on
pools with small pixel loops it depends on the dequeue order. The path is
then rebuilt backwards, preferring orthogonal steps over diagonal ones.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Tuple

from ..domain.geometry import Point, UsablePointSet
from ..utils.geometry import get_neighbours, manhattan_offset

logger = logging.getLogger(__name__)


def label_distances(source: Point, usable: UsablePointSet) -> Tuple[Dict[Point, int], Point]:
    """Breadth-first distance labelling from source.

    Args:
        source: Start pixel. It may be absent from usable.
        usable: Pool of pixels the search may enter. Not modified.

    Returns:
        Tuple of (labels, last) where labels maps every reached pixel to
        its distance from source and last is the final pixel dequeued.
    """
    labels = {source: 0}
    queue = deque([source])
    last = source
    while queue:
        last = queue.popleft()
        distance = labels[last]
        for neighbour in get_neighbours(last, usable):
            if neighbour not in labels:
                labels[neighbour] = distance + 1
                queue.append(neighbour)
    return labels, last


def find_longest_path(source: Point, usable: UsablePointSet) -> List[Point]:
    """Approximate longest path from source through usable.

    Args:
        source: Start pixel; always element 0 of the result, even when it
            is not in usable (a reused anchor).
        usable: Pool of pixels the path may use. Not modified.

    Returns:
        Pixels from source to the far end, length = far distance + 1.
    """
    labels, current = label_distances(source, usable)
    distance = labels[current]

    path = [current]
    while distance > 1:
        distance -= 1
        best = None
        for neighbour in get_neighbours(current, usable):
            if labels.get(neighbour) != distance:
                continue
            if best is None or manhattan_offset(current, neighbour) < manhattan_offset(current, best):
                best = neighbour
        current = best
        path.append(current)
    if current != source:
        path.append(source)
    path.reverse()

    logger.debug("Longest path from %s: %d points", source, len(path))
    return path
