"""Domain objects for cluster branch analysis.

This module provides the core value objects and data structures used
throughout the package. These objects represent the fundamental concepts
in the domain: detector pixels, clusters, and the branch tree produced by
decomposing a cluster.

The module exports the following classes:

Pixel classes:
    Point: Immutable detector pixel; identity is its (x, y) coordinate.
    UsablePointSet: Ordered point pool resolving canonical instances.

Cluster classes:
    Cluster: Immutable pixel collection of one detection event.
    ClusterInfo: Index record locating a cluster in a pixel file.

Branch classes:
    Branch: One node of a branch tree.
    BranchTree: Arena owning all nodes of one decomposition.
    BranchedCluster: Complete decomposition result.
    BranchRecord: Serializable per-branch attribute record.

Example usage:
    Working with pixels::

        from track_lib.domain import Point, UsablePointSet

        pool = UsablePointSet([Point(1, 1, energy=12.5), Point(1, 2)])
        stored = pool.get(Point(1, 1))
        print(stored.energy)  # 12.5
"""

from .branch import Branch, BranchedCluster, BranchRecord, BranchTree
from .cluster import Cluster, ClusterInfo
from .geometry import Point, UsablePointSet

__all__ = [
    'Point', 'UsablePointSet',
    'Cluster', 'ClusterInfo',
    'Branch', 'BranchTree', 'BranchedCluster', 'BranchRecord',
]
