"""Orphaned junction repair.

The main carve pass can leave a junction pixel outside every branch while
it touches a covered pixel: the branch that passed by consumed the pixels
around it without stopping there. The reclaimer carves a small branch from
each such junction out of the still-uncovered pixels and hangs it under the
branch it touches.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set

from ..config import TRIVIAL_BRANCH_LENGTH
from ..domain.branch import BranchTree
from ..domain.geometry import Point, UsablePointSet
from ..utils.geometry import get_neighbours

logger = logging.getLogger(__name__)


class CrossPointReclaimer:
    """Splices branches grown from orphaned junctions back into the tree.

    Attributes:
        carver: BranchCarver used to grow the recovered branches.
        trivial_branch_length: Recovered branches whose total size does
            not exceed this are dropped.
    """

    def __init__(self, carver, trivial_branch_length: int = TRIVIAL_BRANCH_LENGTH):
        self.carver = carver
        self.trivial_branch_length = trivial_branch_length

    def reclaim(self, tree: BranchTree, main_ids: Sequence[int],
                points: Iterable[Point], junctions: Sequence[Point], budget) -> List[int]:
        """Recover orphaned junctions.

        Covered pixels are fixed before the pass starts. Every recovered
        branch, kept or not, is removed from the uncovered pool so two
        junctions never reclaim the same pixels. A recovered branch is
        carved with the depth left below its owner so the tree never gets
        deeper than budget.max_depth.

        Args:
            tree: Arena holding the main branches.
            main_ids: Ids of the main branches.
            points: All skeleton pixels.
            junctions: Junction pixels in classifier order.
            budget: Shared BranchBudget of the analysis.

        Returns:
            Ids of the branches attached to the tree.
        """
        covered: Set[Point] = set()
        for bid in main_ids:
            covered |= tree.total_points(bid)
        covered_pool = UsablePointSet(covered)
        uncovered = UsablePointSet(p for p in points if p not in covered)

        attached = []
        for junction in junctions:
            if budget.exhausted:
                break
            if junction not in uncovered:
                continue
            owner_id = self._find_owner(tree, get_neighbours(junction, covered_pool))
            if owner_id is None:
                continue
            depth_left = budget.max_depth - tree.depth(owner_id) - 1
            if depth_left < 0:
                logger.debug("Junction %s sits under a branch at full depth", junction)
                continue

            branch = self.carver.carve(tree, uncovered, junction, junctions, budget, depth_left)
            total = tree.total_points(branch.branch_id)
            uncovered.difference_update(total)
            if len(total) > self.trivial_branch_length:
                tree.add_child(owner_id, branch.branch_id)
                attached.append(branch.branch_id)
                logger.debug("Reclaimed junction %s: %d points under branch %d",
                             junction, len(total), owner_id)
            else:
                tree.discard(branch.branch_id)
        return attached

    def _find_owner(self, tree: BranchTree, touching: List[Point]) -> Optional[int]:
        for point in touching:
            owner_id = tree.owner_of(point)
            if owner_id is not None:
                return owner_id
        return None
