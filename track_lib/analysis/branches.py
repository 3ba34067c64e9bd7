"""Branch tree construction.

This module turns a skeleton cluster into a tree of branches: approximate
track segments that meet at junction pixels. It contains the recursive
carve step and the top-level analysis that enumerates main branches from
a fixed center, repairs orphaned junctions and attempts one merge.

The module exports:
    BranchBudget: Shared depth and branch-count budget of one analysis.
    BranchCarver: Carves one branch and its sub-branches from a point pool.
    BranchAnalyzer: Full decomposition of a cluster into a BranchedCluster.

The carve step:
    1. Find the longest path from the anchor through the usable pool.
    2. Collect the junctions lying on that path (the anchor excluded).
    3. Build the pool for the children: the parent's pool minus the path
       (local junctions kept), minus the anchor and its non-junction
       neighbours.
    4. Carve one child per local junction, depth-first, while depth and
       the shared budget allow.

Example usage:
    Decompose a cluster::

        from track_lib.analysis import BranchAnalyzer, ClusterSkeletonizer

        skeleton = ClusterSkeletonizer().skeletonize(cluster)
        result = BranchAnalyzer().analyze(skeleton, cluster)
        for branch in result.main_branches:
            print(branch.anchor, len(branch))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..config import BranchingConfig
from ..domain.branch import Branch, BranchedCluster, BranchTree
from ..domain.cluster import Cluster
from ..domain.geometry import Point, UsablePointSet
from ..utils.geometry import get_neighbours
from .crosspoints import NeighbourCountFilter
from .energy import EnergyCenterFinder
from .merge import BranchMerger
from .paths import find_longest_path
from .reclaim import CrossPointReclaimer

logger = logging.getLogger(__name__)


@dataclass
class BranchBudget:
    """Budget shared by every carve of one analysis.

    A single instance is passed by reference through the whole recursion,
    the main-branch loop and the reclaim pass, so the branch-count cap is
    global rather than per subtree.

    Attributes:
        remaining: Branch nodes that may still be created.
        max_depth: Sub-branch nesting allowed below a carved root.
    """
    remaining: int
    max_depth: int

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def spend(self) -> None:
        self.remaining -= 1


@dataclass
class _CarveTask:
    anchor: Point
    usable: UsablePointSet
    depth_remaining: int
    parent_id: Optional[int] = None
    # Pools that later siblings and cousins carve from
    lineage: Tuple[UsablePointSet, ...] = field(default_factory=tuple)


class BranchCarver:
    """Carves branch trees out of a usable point pool."""

    def carve(self, tree: BranchTree, usable: UsablePointSet, anchor: Point,
              junctions: Sequence[Point], budget: BranchBudget,
              depth_remaining: Optional[int] = None) -> Optional[Branch]:
        """Carve a branch rooted at anchor, with sub-branches.

        Children are processed depth-first from an explicit stack in the
        order their junctions appear in junctions. Each carved path is
        removed from the pools its siblings and cousins still carve from;
        a junction that is no longer in its pool when its turn comes is
        skipped.

        Args:
            tree: Arena receiving the new nodes.
            usable: Pool for the root path. Read only.
            anchor: Start pixel of the root branch.
            junctions: Junction pixels in classifier order.
            budget: Shared budget, spent once per created node.
            depth_remaining: Nesting allowed below the root. Defaults to
                budget.max_depth.

        Returns:
            The root Branch with its total point set cached, or None if the
            budget was already exhausted.
        """
        if budget.exhausted:
            return None
        if depth_remaining is None:
            depth_remaining = budget.max_depth

        root = None
        stack = [_CarveTask(anchor, usable, depth_remaining)]
        while stack:
            task = stack.pop()
            if root is not None:
                if budget.exhausted:
                    logger.debug("Branch budget exhausted, skipping junction %s", task.anchor)
                    continue
                if task.anchor not in task.usable:
                    logger.debug("Junction %s already carved, skipping", task.anchor)
                    continue

            path = find_longest_path(task.anchor, task.usable)
            budget.spend()
            node = tree.new_branch(task.anchor, path, task.parent_id)
            if root is None:
                root = node

            on_path = set(path)
            local_junctions = [j for j in junctions if j in on_path and j != task.anchor]
            descend = bool(local_junctions) and task.depth_remaining > 0 and not budget.exhausted

            if descend:
                child_usable = self._child_pool(task.usable, task.anchor, path, local_junctions)
            for shared in task.lineage:
                shared.difference_update(path)
            if not descend:
                continue

            lineage = task.lineage + (child_usable,)
            for junction in reversed(local_junctions):
                stack.append(_CarveTask(junction, child_usable, task.depth_remaining - 1,
                                        node.branch_id, lineage))

        tree.total_points(root.branch_id)
        return root

    def _child_pool(self, usable: UsablePointSet, anchor: Point,
                    path: List[Point], local_junctions: List[Point]) -> UsablePointSet:
        keep = set(local_junctions)
        pool = usable.copy()
        pool.difference_update(p for p in path if p not in keep)
        pool.discard(anchor)
        pool.difference_update(p for p in get_neighbours(anchor, usable) if p not in keep)
        return pool


class BranchAnalyzer:
    """Decomposes a cluster into a tree of branches.

    The analyzer coordinates:
        - EnergyCenterFinder to pick the seed pixel
        - NeighbourCountFilter to find junction pixels
        - BranchCarver to carve main branches from the seed
        - CrossPointReclaimer to repair orphaned junctions
        - BranchMerger to fuse one continuous branch pair

    Attributes:
        config: BranchingConfig with budgets and thresholds.
        center_finder: Seed selection collaborator.
        cross_point_filter: Junction classification collaborator.
        carver: BranchCarver used for every carve.
        reclaimer: CrossPointReclaimer run after the main loop.
        merger: BranchMerger run last.

    Example:
        >>> analyzer = BranchAnalyzer(BranchingConfig(max_depth=3))
        >>> result = analyzer.analyze(skeleton, cluster)
        >>> [len(b) for b in result.main_branches]
        [42, 17]
    """

    def __init__(self, config: BranchingConfig | None = None,
                 center_finder: EnergyCenterFinder | None = None,
                 cross_point_filter: NeighbourCountFilter | None = None):
        self.config = (config or BranchingConfig()).validate()
        self.center_finder = center_finder or EnergyCenterFinder()
        self.cross_point_filter = cross_point_filter or NeighbourCountFilter()
        self.carver = BranchCarver()
        self.reclaimer = CrossPointReclaimer(self.carver, self.config.trivial_branch_length)
        self.merger = BranchMerger(
            regression_points=self.config.regression_points,
            angle_threshold=self.config.merge_angle,
            anchor_distance=self.config.merge_anchor_distance,
        )

    def analyze(self, skeleton: Cluster, origin: Cluster | None = None,
                max_depth: int | None = None) -> Optional[BranchedCluster]:
        """Decompose a skeleton into main branches and their sub-branches.

        Main branches are carved one after another from the center against
        a shrinking pool; the center is put back after each carve so every
        main branch starts there. The first main branch is kept even when
        trivial; afterwards a trivial branch ends the enumeration.

        Args:
            skeleton: Thinned cluster used for topology.
            origin: Full cluster used to weight the center. Defaults to
                skeleton.
            max_depth: Sub-branch nesting limit. Defaults to config.max_depth.

        Returns:
            BranchedCluster with main branches sorted largest first, or None
            if the skeleton has no points.
        """
        if skeleton is None or not skeleton.points:
            logger.warning("Cannot analyze an empty cluster")
            return None
        origin = origin if origin is not None and origin.points else skeleton
        if max_depth is None:
            max_depth = self.config.max_depth

        budget = BranchBudget(self.config.max_branch_count, max_depth)
        tree = BranchTree()
        usable = UsablePointSet(skeleton.points)
        center = self.center_finder.calc_center_point(skeleton.points, origin.points)
        junctions = self.cross_point_filter.process(skeleton.points)
        trivial_length = self.config.trivial_branch_length

        main_ids: List[int] = []
        while not budget.exhausted:
            branch = self.carver.carve(tree, usable, center, junctions, budget, max_depth)
            trivial = len(branch) <= trivial_length
            if trivial and main_ids:
                tree.discard(branch.branch_id)
                break
            main_ids.append(branch.branch_id)
            usable.difference_update(tree.total_points(branch.branch_id))
            usable.add(center)
            logger.debug("Main branch %d: %d points, %d total",
                         branch.branch_id, len(branch), len(tree.total_points(branch.branch_id)))
            if trivial:
                break

        self.reclaimer.reclaim(tree, main_ids, skeleton.points, junctions, budget)

        main_ids.sort(key=lambda bid: len(tree.branch(bid)), reverse=True)
        if self.merger.merge_once(tree, main_ids, max_depth):
            logger.debug("Merged branches, %d main branch(es) left", len(main_ids))

        logger.debug("Analyzed %d pixels: %d main branches, %d nodes created",
                     skeleton.pixel_count, len(main_ids), tree.created_count)
        return BranchedCluster(skeleton, tree, main_ids, center)
