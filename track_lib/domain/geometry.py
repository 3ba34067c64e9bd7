"""Pixel value objects for cluster analysis."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Point:
    """Immutable detector pixel.

    Equality and hashing use the grid coordinates only; arrival time and
    energy ride along without affecting identity.
    """
    x: int
    y: int
    toa: float = field(default=0.0, compare=False)
    energy: float = field(default=0.0, compare=False)

    @property
    def key(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def distance_to(self, other: Point) -> int:
        """Chebyshev distance to another point."""
        return max(abs(self.x - other.x), abs(self.y - other.y))

    def offset(self, dx: int, dy: int) -> Point:
        """Bare point shifted by (dx, dy), without auxiliary attributes."""
        return Point(self.x + dx, self.y + dy)

    def to_tuple(self) -> Tuple[int, int]:
        """Convert to tuple for compatibility."""
        return (self.x, self.y)

    def to_list(self) -> List[int]:
        """Convert to list for JSON serialization."""
        return [int(self.x), int(self.y)]

    @classmethod
    def from_tuple(cls, t: Tuple[int, int]) -> Point:
        """Create from tuple."""
        return cls(t[0], t[1])

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


class UsablePointSet:
    """Insertion-ordered set of points that resolves canonical instances.

    Lookups accept any point with the right coordinates and hand back the
    stored instance, so energy and arrival time survive neighbour queries.
    """

    def __init__(self, points: Iterable[Point] = ()):
        self._points: Dict[Tuple[int, int], Point] = {}
        for point in points:
            self._points.setdefault(point.key, point)

    def __contains__(self, point: object) -> bool:
        if not isinstance(point, Point):
            return False
        return point.key in self._points

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points.values())

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"UsablePointSet({list(self._points.values())!r})"

    def get(self, point: Point) -> Optional[Point]:
        """Stored instance with the same coordinates, or None."""
        return self._points.get(point.key)

    def add(self, point: Point) -> None:
        self._points.setdefault(point.key, point)

    def discard(self, point: Point) -> None:
        self._points.pop(point.key, None)

    def difference_update(self, points: Iterable[Point]) -> None:
        for point in points:
            self._points.pop(point.key, None)

    def copy(self) -> UsablePointSet:
        clone = UsablePointSet()
        clone._points = dict(self._points)
        return clone
