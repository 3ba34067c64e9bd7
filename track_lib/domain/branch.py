"""Branch tree domain objects.

This module provides the data structures produced by branch decomposition:
individual branches, the tree that owns them, the final decomposition result
and the per-branch attribute record handed to classification layers.

The module provides the following classes:
    Branch: One node of the tree, holding its anchor and own path.
    BranchTree: Arena that owns every branch by integer id, keeps the
        parent/child links, a point-to-branch index and cached total sets.
    BranchedCluster: Final decomposition of one cluster.
    BranchRecord: Serializable attribute record of a branch.

Nodes are addressed by id rather than by reference so that merging and
reparenting only rewrite id lists; an absorbed node is marked retired and
stays in the arena.

Example usage:
    Walking a decomposition::

        result = analyzer.analyze(skeleton, cluster)
        for branch in result.main_branches:
            print(branch.branch_id, len(branch))
            for child in result.tree.children(branch.branch_id):
                print("  child", child.anchor, len(child))
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set

from .cluster import Cluster
from .geometry import Point


@dataclass
class Branch:
    """A node of the branch tree.

    Attributes:
        branch_id: Stable id inside the owning BranchTree.
        anchor: Point the longest-path search started from.
        points: Own path, ordered from the anchor outwards. After a merge
            this is an ordered union and no longer a traversal order.
        parent_id: Id of the parent branch, None for main branches.
        child_ids: Ids of the direct sub-branches, in carve order.
        retired: True once the node was absorbed or discarded.
    """
    branch_id: int
    anchor: Point
    points: List[Point]
    parent_id: Optional[int] = None
    child_ids: List[int] = field(default_factory=list)
    retired: bool = False

    def __len__(self) -> int:
        return len(self.points)

    def __contains__(self, point: object) -> bool:
        return point in self.points


@dataclass
class BranchRecord:
    """Attribute record of one branch and, recursively, its sub-branches.

    Attributes:
        start: Anchor of the branch.
        length: Number of points in the branch's own path.
        energy: Total energy deposited in the own path.
        sub_branches: Records of the direct sub-branches.
    """
    start: Point
    length: int
    energy: float
    sub_branches: List[BranchRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'start': self.start.to_list(),
            'length': self.length,
            'energy': round(float(self.energy), 3),
            'sub_branches': [sub.to_dict() for sub in self.sub_branches],
        }


class BranchTree:
    """Arena owning all branch nodes of one decomposition."""

    def __init__(self):
        self._nodes: Dict[int, Branch] = {}
        self._owner: Dict[Point, int] = {}
        self._totals: Dict[int, Set[Point]] = {}
        self._next_id = 0

    @property
    def created_count(self) -> int:
        """Number of nodes ever created, retired ones included."""
        return self._next_id

    def __len__(self) -> int:
        return sum(1 for node in self._nodes.values() if not node.retired)

    def __iter__(self) -> Iterator[Branch]:
        return (node for node in self._nodes.values() if not node.retired)

    def branch(self, branch_id: int) -> Branch:
        return self._nodes[branch_id]

    def children(self, branch_id: int) -> List[Branch]:
        return [self._nodes[cid] for cid in self._nodes[branch_id].child_ids]

    def new_branch(self, anchor: Point, points: List[Point],
                   parent_id: Optional[int] = None) -> Branch:
        """Create a node and, if a parent is given, append it as a child."""
        node = Branch(self._next_id, anchor, list(points))
        self._nodes[node.branch_id] = node
        self._next_id += 1
        for point in node.points:
            self._owner.setdefault(point, node.branch_id)
        if parent_id is not None:
            self.add_child(parent_id, node.branch_id)
        return node

    def add_child(self, parent_id: int, child_id: int) -> None:
        """Attach child_id under parent_id, detaching it from a previous parent."""
        child = self._nodes[child_id]
        if child.parent_id is not None and child.parent_id != parent_id:
            old_parent = self._nodes[child.parent_id]
            old_parent.child_ids.remove(child_id)
            self._invalidate(old_parent.branch_id)
        if child_id not in self._nodes[parent_id].child_ids:
            self._nodes[parent_id].child_ids.append(child_id)
        child.parent_id = parent_id
        self._invalidate(parent_id)

    def owner_of(self, point: Point) -> Optional[int]:
        """Id of the live branch whose own path holds the point, if any."""
        return self._owner.get(point)

    def depth(self, branch_id: int) -> int:
        """Distance from the node to its main branch."""
        depth = 0
        node = self._nodes[branch_id]
        while node.parent_id is not None:
            node = self._nodes[node.parent_id]
            depth += 1
        return depth

    def walk(self, branch_id: int) -> Iterator[Branch]:
        """Pre-order traversal of the subtree rooted at branch_id."""
        stack = [branch_id]
        while stack:
            node = self._nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.child_ids))

    def total_points(self, branch_id: int) -> Set[Point]:
        """Own path unioned with every descendant's total set (cached)."""
        cached = self._totals.get(branch_id)
        if cached is not None:
            return cached
        # Post-order over an explicit stack so deep trees stay off the call stack
        order = list(self.walk(branch_id))
        for node in reversed(order):
            if node.branch_id in self._totals:
                continue
            total = set(node.points)
            for cid in node.child_ids:
                total |= self._totals[cid]
            self._totals[node.branch_id] = total
        return self._totals[branch_id]

    def absorb(self, survivor_id: int, absorbed_id: int,
               adopt_ids: Iterable[int] = ()) -> Branch:
        """Fuse absorbed_id into survivor_id.

        The survivor's path becomes its own path followed by the absorbed
        path reversed, duplicates dropped. Children of both nodes plus every
        id in adopt_ids end up under the survivor; the absorbed node is
        retired.
        """
        survivor = self._nodes[survivor_id]
        absorbed = self._nodes[absorbed_id]

        seen = set(survivor.points)
        for point in reversed(absorbed.points):
            if point not in seen:
                survivor.points.append(point)
                seen.add(point)
        for point in absorbed.points:
            if self._owner.get(point) == absorbed_id:
                self._owner[point] = survivor_id

        if absorbed.parent_id is not None:
            self._nodes[absorbed.parent_id].child_ids.remove(absorbed_id)
            self._invalidate(absorbed.parent_id)
            absorbed.parent_id = None
        for cid in list(absorbed.child_ids):
            self.add_child(survivor_id, cid)
        for cid in adopt_ids:
            if cid not in (survivor_id, absorbed_id):
                self.add_child(survivor_id, cid)

        absorbed.child_ids = []
        absorbed.retired = True
        self._totals.pop(absorbed_id, None)
        self._invalidate(survivor_id)
        return survivor

    def discard(self, branch_id: int) -> None:
        """Retire a whole subtree that did not make it into the result."""
        node = self._nodes[branch_id]
        if node.parent_id is not None:
            self._nodes[node.parent_id].child_ids.remove(branch_id)
            self._invalidate(node.parent_id)
            node.parent_id = None
        for sub in list(self.walk(branch_id)):
            sub.retired = True
            self._totals.pop(sub.branch_id, None)
            for point in sub.points:
                if self._owner.get(point) == sub.branch_id:
                    del self._owner[point]

    def trim_depth(self, branch_id: int, max_depth: int) -> int:
        """Discard every node of a subtree that sits deeper than max_depth.

        Returns:
            Number of nodes discarded.
        """
        if self.depth(branch_id) > max_depth:
            removed = sum(1 for _ in self.walk(branch_id))
            self.discard(branch_id)
            return removed

        removed = 0
        stack = [(branch_id, self.depth(branch_id))]
        while stack:
            bid, depth = stack.pop()
            node = self._nodes[bid]
            if depth < max_depth:
                stack.extend((cid, depth + 1) for cid in node.child_ids)
                continue
            for cid in list(node.child_ids):
                removed += sum(1 for _ in self.walk(cid))
                self.discard(cid)
        return removed

    def _invalidate(self, branch_id: Optional[int]) -> None:
        while branch_id is not None:
            self._totals.pop(branch_id, None)
            branch_id = self._nodes[branch_id].parent_id


@dataclass
class BranchedCluster:
    """Branch decomposition of one cluster.

    Attributes:
        cluster: Source cluster the decomposition was computed from.
        tree: Arena holding every branch node.
        main_ids: Ids of the top-level branches, largest first.
        center: Seed point all main branches start from.
    """
    cluster: Cluster
    tree: BranchTree
    main_ids: List[int]
    center: Point

    @property
    def main_branches(self) -> List[Branch]:
        return [self.tree.branch(bid) for bid in self.main_ids]

    @property
    def branch_count(self) -> int:
        """Number of live branch nodes reachable from the main branches."""
        return sum(1 for bid in self.main_ids for _ in self.tree.walk(bid))

    def covered_points(self) -> Set[Point]:
        """Union of the total point sets of all main branches."""
        covered: Set[Point] = set()
        for bid in self.main_ids:
            covered |= self.tree.total_points(bid)
        return covered

    def to_records(self, energy_calculator) -> List[BranchRecord]:
        """Build one nested BranchRecord per main branch.

        Args:
            energy_calculator: Object exposing calc_total_energy(points).
        """
        return [self._record(bid, energy_calculator) for bid in self.main_ids]

    def _record(self, branch_id: int, energy_calculator) -> BranchRecord:
        node = self.tree.branch(branch_id)
        return BranchRecord(
            start=node.anchor,
            length=len(node.points),
            energy=energy_calculator.calc_total_energy(node.points),
            sub_branches=[self._record(cid, energy_calculator) for cid in node.child_ids],
        )
