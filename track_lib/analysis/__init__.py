"""Cluster analysis module.

This module provides the branch decomposition of detector clusters and
the collaborators it relies on.

The module exports:
    BranchAnalyzer: Decomposes a cluster into a tree of branches.
    BranchCarver: Carves one branch and its sub-branches.
    BranchBudget: Shared depth and branch-count budget.
    BranchMerger: Fuses one continuous branch pair.
    CrossPointReclaimer: Splices orphaned junctions back into the tree.
    NeighbourCountFilter, NeighbourCountMode: Junction classification.
    EnergyCenterFinder, EnergyCalculator: Seed selection and energy sums.
    ClusterSkeletonizer: Thins clusters with scikit-image.
    ZCalculator, DriftConfig: Relative depth from arrival times.
    find_longest_path: Breadth-first longest-path heuristic.

Example usage:
    Decompose a cluster::

        from track_lib.analysis import BranchAnalyzer, ClusterSkeletonizer

        skeleton = ClusterSkeletonizer().skeletonize(cluster)
        result = BranchAnalyzer().analyze(skeleton, cluster)
        if result:
            print(f"Main branches: {len(result.main_ids)}")
"""

from .branches import BranchAnalyzer, BranchBudget, BranchCarver
from .crosspoints import NeighbourCountFilter, NeighbourCountMode
from .depth import DriftConfig, ZCalculator
from .energy import EnergyCalculator, EnergyCenterFinder
from .merge import BranchMerger
from .paths import find_longest_path
from .reclaim import CrossPointReclaimer
from .skeleton import ClusterSkeletonizer

__all__ = [
    'BranchAnalyzer', 'BranchBudget', 'BranchCarver',
    'BranchMerger', 'CrossPointReclaimer',
    'NeighbourCountFilter', 'NeighbourCountMode',
    'EnergyCenterFinder', 'EnergyCalculator',
    'ClusterSkeletonizer', 'ZCalculator', 'DriftConfig',
    'find_longest_path',
]
