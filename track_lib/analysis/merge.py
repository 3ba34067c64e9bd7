"""Continuity-based branch merging.

Two branches are continuous when straight lines fitted to their leading
points point the same way. The merger looks for one such pair and fuses
it; it never iterates to a fixed point.

Search order, first match wins:
    1. Two main branches (the halves of a track crossing the center).
    2. A main branch and one of its direct sub-branches anchored close to
       the main anchor.

Example usage:
    Continuity of two paths::

        from track_lib.analysis.merge import BranchMerger

        merger = BranchMerger()
        merger.are_continuous(left.points, right.points)
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import MERGE_ANCHOR_DISTANCE, MERGE_ANGLE_THRESHOLD, REGRESSION_POINTS
from ..domain.branch import BranchTree
from ..domain.geometry import Point
from ..utils.geometry import chebyshev_distance

logger = logging.getLogger(__name__)

# Slope reported for a fit with no x variance (a vertical run of pixels)
VERTICAL_SLOPE = math.inf


def fit_slope(points: Sequence[Point]) -> float:
    """Least-squares slope of y over x.

    Returns:
        The fitted slope, or VERTICAL_SLOPE when all x values are equal.
    """
    xs = np.array([p.x for p in points], dtype=np.float64)
    ys = np.array([p.y for p in points], dtype=np.float64)
    dx = xs - xs.mean()
    sxx = float(np.dot(dx, dx))
    if sxx == 0.0:
        return VERTICAL_SLOPE
    return float(np.dot(dx, ys - ys.mean())) / sxx


def slope_angle(s1: float, s2: float) -> float:
    """Acute angle in radians between two lines given by their slopes.

    Equal to atan(|(s1 - s2) / (1 + s1 * s2)|) and well defined for
    perpendicular lines and infinite slopes.
    """
    diff = abs(math.atan(s1) - math.atan(s2))
    return min(diff, math.pi - diff)


class BranchMerger:
    """Fuses at most one continuous branch pair per call.

    Attributes:
        regression_points: Leading path points used for each fit.
        angle_threshold: Largest angle (radians) still counted as continuous.
        anchor_distance: Largest Chebyshev distance between a main anchor
            and the anchor of a sub-branch merged into it.
    """

    def __init__(self, regression_points: int = REGRESSION_POINTS,
                 angle_threshold: float = MERGE_ANGLE_THRESHOLD,
                 anchor_distance: int = MERGE_ANCHOR_DISTANCE):
        self.regression_points = regression_points
        self.angle_threshold = angle_threshold
        self.anchor_distance = anchor_distance

    def are_continuous(self, left: Sequence[Point], right: Sequence[Point]) -> bool:
        """True if the leading segments of two paths are near-colinear."""
        s1 = fit_slope(left[:self.regression_points])
        s2 = fit_slope(right[:self.regression_points])
        return slope_angle(s1, s2) < self.angle_threshold

    def merge_once(self, tree: BranchTree, main_ids: List[int],
                   max_depth: Optional[int] = None) -> bool:
        """Find and apply the first merge, updating main_ids in place.

        When two main branches fuse, the remaining main branches move one
        level down under the survivor. With max_depth given, nodes pushed
        below that depth are discarded.

        Returns:
            True if a merge happened.
        """
        pair = self._find_main_pair(tree, main_ids)
        if pair is not None:
            survivor_id, absorbed_id = pair
            others = [bid for bid in main_ids if bid not in pair]
            tree.absorb(survivor_id, absorbed_id, others)
            main_ids[:] = [survivor_id]
            trimmed = tree.trim_depth(survivor_id, max_depth) if max_depth is not None else 0
            logger.debug("Merged main branch %d into %d, adopted %d main branch(es), "
                         "trimmed %d node(s)", absorbed_id, survivor_id, len(others), trimmed)
            return True

        pair = self._find_sub_branch(tree, main_ids)
        if pair is not None:
            survivor_id, absorbed_id = pair
            tree.absorb(survivor_id, absorbed_id)
            logger.debug("Merged sub-branch %d into main branch %d", absorbed_id, survivor_id)
            return True
        return False

    def _find_main_pair(self, tree: BranchTree, main_ids: List[int]) -> Optional[Tuple[int, int]]:
        for i, left_id in enumerate(main_ids):
            left = tree.branch(left_id)
            for right_id in main_ids[i + 1:]:
                if self.are_continuous(left.points, tree.branch(right_id).points):
                    return left_id, right_id
        return None

    def _find_sub_branch(self, tree: BranchTree, main_ids: List[int]) -> Optional[Tuple[int, int]]:
        for main_id in main_ids:
            main = tree.branch(main_id)
            for child in tree.children(main_id):
                if chebyshev_distance(child.anchor, main.anchor) > self.anchor_distance:
                    continue
                if self.are_continuous(main.points, child.points):
                    return main_id, child.branch_id
        return None
