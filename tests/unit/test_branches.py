"""Unit tests for branch tree construction.

Tests track_lib.analysis.branches:
    - BranchBudget: shared node budget
    - BranchCarver: recursive carve of one branch with sub-branches
    - BranchAnalyzer: full decomposition, main-branch loop, merge

Analyzer tests pin the center pixel with the analyzer_at fixture so the
expected trees can be worked out by hand.
"""

import unittest

import pytest

from track_lib.analysis.branches import BranchAnalyzer, BranchBudget, BranchCarver
from track_lib.analysis.crosspoints import NeighbourCountFilter
from track_lib.config import BranchingConfig
from track_lib.domain.branch import BranchTree
from track_lib.domain.cluster import Cluster
from track_lib.domain.geometry import Point, UsablePointSet


def keys(points):
    return [p.key for p in points]


def make_cluster(coords, energy=1.0):
    """Cluster from (x, y) tuples with uniform energy, duplicates dropped."""
    return Cluster(tuple(Point(x, y, energy=energy) for x, y in dict.fromkeys(coords)))


def branch_signature(tree, branch_id):
    """Nested tuple describing a subtree: anchor, path, children."""
    node = tree.branch(branch_id)
    return (
        node.anchor.key,
        tuple(p.key for p in node.points),
        tuple(branch_signature(tree, cid) for cid in node.child_ids),
    )


class TestBranchBudget(unittest.TestCase):
    """Tests for BranchBudget."""

    def test_spend_until_exhausted(self):
        budget = BranchBudget(2, 3)
        self.assertFalse(budget.exhausted)
        budget.spend()
        budget.spend()
        self.assertTrue(budget.exhausted)


class TestBranchCarver(unittest.TestCase):
    """Tests for BranchCarver.carve on a Y-shaped pool."""

    def setUp(self):
        coords = ([(5, y) for y in range(0, 6)]
                  + [(4, 6), (3, 7), (2, 8)]
                  + [(6, 6), (7, 7), (8, 8), (9, 9)])
        self.points = [Point(x, y) for x, y in coords]
        self.junctions = NeighbourCountFilter().process(self.points)
        self.tree = BranchTree()
        self.carver = BranchCarver()

    def test_carves_main_path_and_sub_branch(self):
        usable = UsablePointSet(self.points)
        root = self.carver.carve(self.tree, usable, Point(5, 0), self.junctions, BranchBudget(10, 4))

        self.assertEqual(keys(root.points),
                         [(5, 0), (5, 1), (5, 2), (5, 3), (5, 4), (5, 5),
                          (6, 6), (7, 7), (8, 8), (9, 9)])
        children = self.tree.children(root.branch_id)
        self.assertEqual(len(children), 1)
        self.assertEqual(keys(children[0].points), [(5, 5), (4, 6), (3, 7), (2, 8)])
        self.assertEqual(len(self.tree.total_points(root.branch_id)), 13)

    def test_input_pool_not_modified(self):
        usable = UsablePointSet(self.points)
        self.carver.carve(self.tree, usable, Point(5, 0), self.junctions, BranchBudget(10, 4))
        self.assertEqual(len(usable), 13)

    def test_depth_zero_has_no_children(self):
        usable = UsablePointSet(self.points)
        root = self.carver.carve(self.tree, usable, Point(5, 0), self.junctions,
                                 BranchBudget(10, 4), depth_remaining=0)
        self.assertEqual(root.child_ids, [])

    def test_budget_stops_children(self):
        budget = BranchBudget(1, 4)
        root = self.carver.carve(self.tree, UsablePointSet(self.points), Point(5, 0),
                                 self.junctions, budget)
        self.assertEqual(root.child_ids, [])
        self.assertEqual(self.tree.created_count, 1)
        self.assertTrue(budget.exhausted)

    def test_exhausted_budget_returns_none(self):
        root = self.carver.carve(self.tree, UsablePointSet(self.points), Point(5, 0),
                                 self.junctions, BranchBudget(0, 4))
        self.assertIsNone(root)
        self.assertEqual(self.tree.created_count, 0)


# -----------------------------------------------------------------------------
# BranchAnalyzer
# -----------------------------------------------------------------------------

def test_single_pixel(analyzer_at):
    result = analyzer_at((5, 5)).analyze(make_cluster([(5, 5)]))

    assert len(result.main_ids) == 1
    assert keys(result.main_branches[0].points) == [(5, 5)]
    assert result.center == Point(5, 5)


def test_empty_cluster_returns_none():
    assert BranchAnalyzer().analyze(Cluster(())) is None


def test_line_from_end_is_one_branch(analyzer_at, line_cluster):
    result = analyzer_at((0, 0)).analyze(line_cluster)

    assert len(result.main_ids) == 1
    assert keys(result.main_branches[0].points) == [(x, 0) for x in range(20)]
    # The trivial follow-up carve was created, then discarded
    assert result.tree.created_count == 2
    assert result.branch_count == 1


def test_line_through_center_merges_halves(analyzer_at, line_cluster):
    """The two halves of a track crossing the center fuse into one branch."""
    result = analyzer_at((10, 0)).analyze(line_cluster)

    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    expected = [(x, 0) for x in range(10, -1, -1)] + [(x, 0) for x in range(19, 10, -1)]
    assert keys(main.points) == expected
    assert len(result.covered_points()) == 20


def test_right_angle_is_not_merged(analyzer_at):
    coords = [(x, 10) for x in range(0, 11)] + [(10, y) for y in range(11, 21)]
    result = analyzer_at((10, 10)).analyze(make_cluster(coords))

    assert [len(b) for b in result.main_branches] == [11, 11]
    first, second = result.main_branches
    assert first.points[-1] == Point(0, 10)
    assert second.points[-1] == Point(10, 20)


def test_star_main_branches(analyzer_at, star_cluster):
    """Each main branch claims new pixels; only the center is shared."""
    result = analyzer_at((10, 10)).analyze(star_cluster)

    assert [len(b) for b in result.main_branches] == [8, 8, 7]
    totals = [result.tree.total_points(bid) for bid in result.main_ids]
    for i, left in enumerate(totals):
        for right in totals[i + 1:]:
            assert left & right == {Point(10, 10)}
    assert len(result.covered_points()) == star_cluster.pixel_count
    assert all(b.anchor == Point(10, 10) for b in result.main_branches)


def test_y_shape_has_sub_branch(analyzer_at, y_cluster):
    result = analyzer_at((5, 0)).analyze(y_cluster)

    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    assert len(main) == 10
    children = result.tree.children(main.branch_id)
    assert len(children) == 1
    assert children[0].anchor == Point(5, 5)
    assert len(children[0]) == 4
    assert len(result.covered_points()) == 13


def test_y_shape_depth_zero(analyzer_at, y_cluster):
    result = analyzer_at((5, 0)).analyze(y_cluster, max_depth=0)

    assert result.branch_count == 1
    assert len(result.covered_points()) == 10


def test_plus_shape(plus_cluster):
    """Energy-weighted center of a plus is its middle pixel.

    Full coverage of all five pixels is deliberately not asserted. Every
    main branch is two pixels long, so the second one is trivial and ends
    the loop, and no sub-branch can pick up the other arms because the
    center is never a local junction of its own path.
    """
    result = BranchAnalyzer().analyze(plus_cluster)

    assert result.center == Point(5, 5)
    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    assert Point(5, 5) in main.points
    assert len(main) == 2
    assert len(result.tree.children(main.branch_id)) <= 3
    assert result.covered_points() <= set(plus_cluster.points)


def _arm_with_tooth():
    """Horizontal track through (10, 10), an upward arm and a tooth off the arm at y = 5."""
    coords = [(x, 10) for x in range(0, 21)]
    coords += [(10, y) for y in range(9, 0, -1)]
    coords += [(x, 5) for x in range(11, 15)]
    return make_cluster(coords)


def test_main_merge_keeps_depth_limit(analyzer_at):
    """Adopting the other main branches must not push nodes below max_depth."""
    result = analyzer_at((10, 10)).analyze(_arm_with_tooth(), max_depth=1)

    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    assert len(main) == 21
    children = result.tree.children(main.branch_id)
    assert [c.points[-1] for c in children] == [Point(10, 1)]
    for node in result.tree.walk(main.branch_id):
        assert result.tree.depth(node.branch_id) <= 1
    assert Point(14, 5) not in result.covered_points()


def test_main_merge_keeps_nodes_within_depth(analyzer_at):
    result = analyzer_at((10, 10)).analyze(_arm_with_tooth(), max_depth=2)

    depths = {keys(node.points)[-1]: result.tree.depth(node.branch_id)
              for node in result.tree.walk(result.main_ids[0])}
    assert depths[(10, 1)] == 1
    assert depths[(14, 5)] == 2
    assert len(result.covered_points()) == 34


def test_carve_pools_only_shrink(analyzer_at, star_cluster, comb_cluster):
    """Every carve sees a subset of the pixels the previous carve saw."""
    for cluster in (star_cluster, comb_cluster):
        analyzer = analyzer_at((10, 10) if cluster is star_cluster else (0, 10))
        carve = analyzer.carver.carve
        pools = []

        def recording_carve(tree, usable, *args, **kwargs):
            pools.append({p.key for p in usable})
            return carve(tree, usable, *args, **kwargs)

        analyzer.carver.carve = recording_carve
        result = analyzer.analyze(cluster)

        assert len(pools) >= 2
        for earlier, later in zip(pools, pools[1:]):
            assert later <= earlier
        assert len(result.covered_points()) == cluster.pixel_count

    covered = set()
    sizes = []
    star = analyzer_at((10, 10)).analyze(star_cluster)
    for bid in sorted(star.main_ids):
        covered |= star.tree.total_points(bid)
        sizes.append(len(covered))
    assert sizes == [8, 15, 21]


def _spine_with_arch():
    """Spine (0..30, 10) with an arch joining (5, 10) to (9, 10) and a spur off the arch top."""
    coords = [(x, 10) for x in range(0, 31)]
    coords += [(5, 9), (5, 8), (6, 7), (7, 7), (8, 7), (9, 8), (9, 9)]
    coords += [(7, 6), (7, 5), (7, 4)]
    return make_cluster(coords)


def _assert_sibling_paths_disjoint(result):
    for bid in result.main_ids:
        for node in result.tree.walk(bid):
            seen = set()
            for child in result.tree.children(node.branch_id):
                own = set(child.points[1:])
                assert not own & seen
                seen |= own


def test_junction_taken_by_sibling_is_skipped(analyzer_at):
    """The arch reaches (9, 10) first, so the spine gets no branch from there."""
    result = analyzer_at((0, 10)).analyze(_spine_with_arch())

    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    assert keys(main.points) == [(x, 10) for x in range(31)]
    children = result.tree.children(main.branch_id)
    assert [c.anchor for c in children] == [Point(5, 10)]

    arch = children[0]
    assert keys(arch.points) == [(5, 10), (5, 9), (5, 8), (6, 7), (7, 7),
                                 (8, 7), (9, 8), (9, 9), (9, 10)]
    grandchildren = result.tree.children(arch.branch_id)
    assert [c.anchor for c in grandchildren] == [Point(9, 10), Point(7, 7)]
    assert keys(grandchildren[1].points) == [(7, 7), (7, 6), (7, 5), (7, 4)]

    _assert_sibling_paths_disjoint(result)
    assert len(result.covered_points()) == 41


def test_comb_sibling_paths_disjoint(analyzer_at, comb_cluster):
    _assert_sibling_paths_disjoint(analyzer_at((0, 10)).analyze(comb_cluster))


def test_orphaned_junction_reclaimed(analyzer_at, comb_cluster):
    """The spine tail past the last tooth is cut off by the main path and comes back as a sub-branch."""
    result = analyzer_at((0, 10)).analyze(comb_cluster)

    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    assert keys(main.points)[-1] == (27, 5)
    children = result.tree.children(main.branch_id)
    assert len(children) == 9
    tail = children[-1]
    assert keys(tail.points) == [(27, 10), (28, 10), (29, 10), (30, 10)]
    assert result.tree.owner_of(Point(27, 9)) == main.branch_id
    assert len(result.covered_points()) == comb_cluster.pixel_count


def test_close_continuous_sub_branch_merged(analyzer_at):
    """A near-parallel branch leaving right next to the center joins the main branch."""
    coords = [(x, 10) for x in range(0, 31)]
    coords += [(2, 9)] + [(x, 8) for x in range(3, 17)]
    result = analyzer_at((0, 10)).analyze(make_cluster(coords))

    assert len(result.main_ids) == 1
    main = result.main_branches[0]
    assert result.tree.children(main.branch_id) == []
    assert result.branch_count == 1
    assert Point(16, 8) in main.points
    assert Point(2, 9) in main.points
    assert len(result.covered_points()) == 46


def test_deterministic(analyzer_at, comb_cluster):
    first = analyzer_at((0, 10)).analyze(comb_cluster)
    second = analyzer_at((0, 10)).analyze(comb_cluster)

    assert first.main_ids == second.main_ids
    assert ([branch_signature(first.tree, bid) for bid in first.main_ids]
            == [branch_signature(second.tree, bid) for bid in second.main_ids])


@pytest.mark.parametrize("max_depth,max_count", [(0, 64), (1, 3), (2, 5), (4, 64), (1, 1)])
def test_budget_respected(analyzer_at, comb_cluster, max_depth, max_count):
    result = analyzer_at((0, 10), max_branch_count=max_count).analyze(
        comb_cluster, max_depth=max_depth)

    assert result.tree.created_count <= max_count
    for bid in result.main_ids:
        for node in result.tree.walk(bid):
            assert result.tree.depth(node.branch_id) <= max_depth


def test_result_is_covered_by_cluster(analyzer_at, comb_cluster):
    result = analyzer_at((0, 10)).analyze(comb_cluster)

    assert result.covered_points() <= set(comb_cluster.points)
    for bid in result.main_ids:
        for node in result.tree.walk(bid):
            assert not node.retired
            assert node.points[0] == node.anchor


def test_comb_is_mostly_covered(analyzer_at, comb_cluster):
    """With room to branch, the teeth become sub-branches of the spine."""
    result = analyzer_at((0, 10)).analyze(comb_cluster)

    assert result.branch_count > 1
    assert len(result.covered_points()) >= comb_cluster.pixel_count * 0.8


def test_origin_weights_center(y_cluster):
    """The full cluster's energy pulls the center along the skeleton."""
    heavy = Cluster(tuple(y_cluster.points) + (Point(9, 8, energy=500.0),))
    result = BranchAnalyzer().analyze(y_cluster, heavy)
    assert result.center in (Point(8, 8), Point(9, 9))


@pytest.mark.slow
def test_large_grid_finishes_within_budget():
    coords = [(x, y) for x in range(0, 60, 2) for y in range(60)] + \
             [(x, y) for y in range(0, 60, 4) for x in range(60)]
    cluster = make_cluster(coords)
    result = BranchAnalyzer(BranchingConfig(max_branch_count=32)).analyze(cluster)
    assert result.tree.created_count <= 32
