"""Shared pytest fixtures for the track_lib test suite.

Fixtures build small synthetic clusters whose decomposition can be worked
out by hand, plus analyzer factories with a pinned center pixel.

Fixtures:
    line_cluster: 20-pixel horizontal track
    plus_cluster: Center pixel plus its four orthogonal neighbours
    y_cluster: Y-shaped track with one junction
    star_cluster: Three arms leaving a common center at wide angles
    comb_cluster: Spine with evenly spaced teeth (many junctions)
    analyzer_at: Factory for BranchAnalyzer seeded at a fixed pixel
    measurement_files: Ini, index and pixel files in tmp_path

Markers:
    slow: Mark test as slow-running (skip with -m "not slow")
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from track_lib.analysis.branches import BranchAnalyzer  # noqa: E402
from track_lib.config import BranchingConfig  # noqa: E402
from track_lib.domain import Cluster, Point  # noqa: E402


# -----------------------------------------------------------------------------
# Pytest Markers
# -----------------------------------------------------------------------------

def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow-running (deselect with '-m \"not slow\"')"
    )


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

class FixedCenterFinder:
    """Center finder that always returns the skeleton pixel at a given coordinate."""

    def __init__(self, xy):
        self.xy = tuple(xy)

    def calc_center_point(self, skeleton_points, origin_points=None):
        for point in skeleton_points:
            if point.key == self.xy:
                return point
        raise ValueError(f"{self.xy} is not a skeleton pixel")


def make_cluster(coords, energy=1.0):
    """Cluster from (x, y) tuples; duplicates are dropped, order kept."""
    unique = dict.fromkeys(coords)
    return Cluster(tuple(Point(x, y, toa=float(i), energy=energy)
                         for i, (x, y) in enumerate(unique)))


# -----------------------------------------------------------------------------
# Cluster Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def line_cluster():
    """Return a 20-pixel horizontal track from (0, 0) to (19, 0)."""
    return make_cluster([(x, 0) for x in range(20)])


@pytest.fixture
def plus_cluster():
    """Return a center pixel (5, 5) with its four orthogonal neighbours."""
    return make_cluster([(5, 5), (5, 4), (6, 5), (5, 6), (4, 5)])


@pytest.fixture
def y_cluster():
    """Return a Y-shaped track.

    Layout:
        - stem from (5, 0) down to the junction (5, 5)
        - short arm (4, 6) -> (2, 8) to the lower left
        - long arm (6, 6) -> (9, 9) to the lower right
    """
    coords = [(5, y) for y in range(0, 6)]
    coords += [(4, 6), (3, 7), (2, 8)]
    coords += [(6, 6), (7, 7), (8, 8), (9, 9)]
    return make_cluster(coords)


@pytest.fixture
def star_cluster():
    """Return three arms leaving (10, 10): up, right and down-left."""
    coords = [(10, 10)]
    coords += [(10, y) for y in range(9, 2, -1)]
    coords += [(x, 10) for x in range(11, 18)]
    coords += [(10 - i, 10 + i) for i in range(1, 7)]
    return make_cluster(coords)


@pytest.fixture
def comb_cluster():
    """Return a spine (0..30, 10) with 5-pixel teeth rising at x = 3, 6, ..., 27."""
    coords = [(x, 10) for x in range(0, 31)]
    for x in range(3, 30, 3):
        coords += [(x, y) for y in range(9, 4, -1)]
    return make_cluster(coords)


# -----------------------------------------------------------------------------
# Analyzer Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def analyzer_at():
    """Return a factory building a BranchAnalyzer seeded at a fixed pixel.

    Example:
        def test_something(analyzer_at, y_cluster):
            analyzer = analyzer_at((5, 0), max_depth=2)
            result = analyzer.analyze(y_cluster)
    """
    def factory(xy, **config):
        return BranchAnalyzer(BranchingConfig(**config), center_finder=FixedCenterFinder(xy))
    return factory


# -----------------------------------------------------------------------------
# Measurement File Fixture
# -----------------------------------------------------------------------------

@pytest.fixture
def measurement_files(tmp_path):
    """Write a two-cluster measurement to tmp_path.

    Cluster 0 is a 4-pixel vertical track, cluster 1 a 3-pixel diagonal.
    The pixel file uses a decimal comma on one line.

    Returns:
        pathlib.Path: Path of the ini file.
    """
    clusters = [
        ["10 10 100.0 5.5", "10 11 101.5 6.0", "10 12 102.0 4.5", "10 13 103.25 7.0"],
        ["20 20 200.0 1.0", "21 21 200,5 2.0", "22 22 201.0 3.0"],
    ]

    pixel_bytes = b""
    index_lines = []
    line_no = 0
    for pixels in clusters:
        index_lines.append(f"{pixels[0].split()[2]} {len(pixels)} {line_no} {len(pixel_bytes)}")
        for pixel in pixels:
            pixel_bytes += (pixel + "\n").encode("ascii")
            line_no += 1

    (tmp_path / "run.px").write_bytes(pixel_bytes)
    (tmp_path / "run.cl").write_text("\n".join(index_lines) + "\n")
    ini = tmp_path / "run.ini"
    ini.write_text("[Measurement]\nPxFile=run.px\nClFile=run.cl\n")
    return ini
