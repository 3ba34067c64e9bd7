"""Readers for clustered pixel files.

A clustered measurement is stored as three text files:
    - an ini file whose second and third lines name the pixel file and the
      cluster-index file (``key=relative/path``)
    - a cluster-index file, one line per cluster:
      ``first_toa pixel_count line_start byte_start``
    - a pixel file, one line per pixel: ``x y toa energy``

Each index line locates its cluster by byte offset, so one cluster can be
loaded without scanning the pixel file from the beginning.

Example usage:
    Iterate over a measurement::

        from track_lib.readers import ClusterFileReader

        reader = ClusterFileReader.from_ini('run42/measurement.ini')
        for cluster in reader.iter_clusters():
            print(cluster.index, cluster.pixel_count)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Tuple

from .domain.cluster import Cluster, ClusterInfo
from .domain.geometry import Point

logger = logging.getLogger(__name__)


class ClusterFormatError(ValueError):
    """Raised when an ini, index or pixel line cannot be parsed."""


def _parse_float(token: str) -> float:
    # Some exports use a decimal comma
    return float(token.replace(',', '.'))


def parse_info_line(line: str) -> ClusterInfo:
    """Parse one cluster-index line.

    Raises:
        ClusterFormatError: If the line does not hold four numeric fields.
    """
    tokens = line.split()
    if len(tokens) < 4:
        raise ClusterFormatError(f"Expected 4 fields in index line, got {len(tokens)}: {line!r}")
    try:
        return ClusterInfo(
            first_toa=_parse_float(tokens[0]),
            pixel_count=int(tokens[1]),
            line_start=int(tokens[2]),
            byte_start=int(tokens[3]),
        )
    except ValueError as e:
        raise ClusterFormatError(f"Malformed index line {line!r}: {e}") from e


def parse_pixel_line(line: str) -> Point:
    """Parse one pixel line into a Point.

    Raises:
        ClusterFormatError: If the line does not hold four numeric fields.
    """
    tokens = line.split()
    if len(tokens) < 4:
        raise ClusterFormatError(f"Expected 4 fields in pixel line, got {len(tokens)}: {line!r}")
    try:
        return Point(int(tokens[0]), int(tokens[1]),
                     toa=_parse_float(tokens[2]), energy=_parse_float(tokens[3]))
    except ValueError as e:
        raise ClusterFormatError(f"Malformed pixel line {line!r}: {e}") from e


def read_ini(ini_path: str | Path) -> Tuple[Path, Path]:
    """Pixel and index file paths named by an ini file.

    Returns:
        Tuple of (pixel_path, index_path), resolved against the ini's
        directory.

    Raises:
        ClusterFormatError: If the ini has fewer than three lines or a
            line lacks a ``key=value`` pair.
    """
    ini_path = Path(ini_path)
    lines = ini_path.read_text().splitlines()
    if len(lines) < 3:
        raise ClusterFormatError(f"{ini_path} must have at least 3 lines")

    paths: List[Path] = []
    for line in lines[1:3]:
        key, sep, value = line.partition('=')
        if not sep or not value.strip():
            raise ClusterFormatError(f"Expected key=value in {ini_path}, got {line!r}")
        paths.append(ini_path.parent / value.strip())
    return paths[0], paths[1]


class ClusterFileReader:
    """Loads clusters from a pixel file and its cluster-index file.

    Attributes:
        pixel_path: Path of the pixel file.
        index_path: Path of the cluster-index file.
    """

    def __init__(self, pixel_path: str | Path, index_path: str | Path):
        self.pixel_path = Path(pixel_path)
        self.index_path = Path(index_path)

    @classmethod
    def from_ini(cls, ini_path: str | Path) -> ClusterFileReader:
        pixel_path, index_path = read_ini(ini_path)
        return cls(pixel_path, index_path)

    def _iter_index_lines(self) -> Iterator[str]:
        with self.index_path.open() as f:
            for line in f:
                if line.strip():
                    yield line

    def iter_infos(self) -> Iterator[ClusterInfo]:
        """Index records in file order; blank lines are skipped.

        Raises:
            ClusterFormatError: On the first malformed index line.
        """
        for line in self._iter_index_lines():
            yield parse_info_line(line)

    def load(self, info: ClusterInfo, index: int | None = None) -> Cluster:
        """Load the cluster an index record points at.

        Raises:
            ClusterFormatError: If the pixel file ends early or a pixel
                line is malformed.
        """
        points = []
        with self.pixel_path.open('rb') as f:
            f.seek(info.byte_start)
            for _ in range(info.pixel_count):
                raw = f.readline()
                if not raw:
                    raise ClusterFormatError(
                        f"{self.pixel_path} ended after {len(points)} of "
                        f"{info.pixel_count} pixels (byte {info.byte_start})")
                points.append(parse_pixel_line(raw.decode('ascii', errors='replace')))
        return Cluster.from_info(info, points, index=index)

    def load_index(self, index: int) -> Cluster:
        """Load the cluster at a 0-based position in the index file.

        Only the requested index line is parsed, so malformed lines before
        it do not shift or block the lookup.

        Raises:
            IndexError: If the index file has fewer clusters.
            ClusterFormatError: If the requested cluster is malformed.
        """
        if index < 0:
            raise IndexError(f"Cluster index must be >= 0, got {index}")
        for i, line in enumerate(self._iter_index_lines()):
            if i == index:
                return self.load(parse_info_line(line), index=i)
        raise IndexError(f"{self.index_path} has no cluster {index}")

    def iter_clusters(self) -> Iterator[Cluster]:
        """All clusters in index order.

        A malformed index line or pixel block is logged and skipped; it
        still takes up its index position.
        """
        for i, line in enumerate(self._iter_index_lines()):
            try:
                cluster = self.load(parse_info_line(line), index=i)
            except ClusterFormatError as e:
                logger.warning("Skipping cluster %d: %s", i, e)
                continue
            yield cluster
