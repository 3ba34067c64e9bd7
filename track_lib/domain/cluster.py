"""Cluster domain objects.

This module provides the data structures describing one detection event
read from a pixel detector: the cluster itself and the index record that
locates it inside a pixel file.

The module provides the following classes:
    ClusterInfo: One line of a cluster-index file.
    Cluster: Immutable, order-irrelevant collection of pixels from one
        physical detection event.

Example usage:
    Building a cluster by hand::

        from track_lib.domain import Cluster, Point

        cluster = Cluster.from_coordinates([(10, 10), (11, 10), (12, 11)])
        print(cluster.pixel_count)  # 3
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .geometry import Point


@dataclass(frozen=True)
class ClusterInfo:
    """Index record of a cluster inside a pixel file.

    Attributes:
        first_toa: Arrival time of the earliest pixel in the cluster.
        pixel_count: Number of pixel lines belonging to the cluster.
        line_start: Line number of the first pixel line.
        byte_start: Byte offset of the first pixel line.
    """
    first_toa: float
    pixel_count: int
    line_start: int
    byte_start: int

    def __str__(self) -> str:
        return f"{self.first_toa} {self.pixel_count} {self.line_start} {self.byte_start}"


@dataclass(frozen=True)
class Cluster:
    """A cluster of detector pixels.

    The cluster may be a raw detection or a thinned skeleton of one; the
    decomposition code treats both the same way and never mutates it.

    Attributes:
        points: Tuple of Point objects. Order carries no meaning but is kept
            so that every derived traversal is reproducible.
        first_toa: Earliest arrival time, when known from the index file.
        byte_start: Byte offset of the cluster in its pixel file, if any.
        index: Position of the cluster in its index file, if any.
    """
    points: Tuple[Point, ...]
    first_toa: float = 0.0
    byte_start: Optional[int] = None
    index: Optional[int] = None

    @property
    def pixel_count(self) -> int:
        return len(self.points)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def with_points(self, points: Iterable[Point]) -> Cluster:
        """Same event metadata with a different point set (e.g. a skeleton)."""
        return Cluster(
            points=tuple(points),
            first_toa=self.first_toa,
            byte_start=self.byte_start,
            index=self.index,
        )

    @classmethod
    def from_coordinates(cls, coords: Iterable[Tuple[int, int]],
                         energy: float = 0.0) -> Cluster:
        """Create from (x, y) tuples, giving every pixel the same energy."""
        return cls(tuple(Point(x, y, energy=energy) for x, y in coords))

    @classmethod
    def from_info(cls, info: ClusterInfo, points: Iterable[Point],
                  index: Optional[int] = None) -> Cluster:
        """Create from an index record and the pixels it points at."""
        return cls(
            points=tuple(points),
            first_toa=info.first_toa,
            byte_start=info.byte_start,
            index=index,
        )
