"""Track Branching Package.

Decomposes the pixels of one particle-track cluster from a pixelated
radiation detector into a tree of branches: approximate track segments
meeting at junction pixels. The branch tree feeds per-branch feature
extraction used for particle-type classification.

The package is organized into the following modules:
    domain: Core value objects including Point, Cluster, Branch and the
        BranchTree arena.
    analysis: Thinning, junction classification, center selection, and the
        carve, reclaim and merge passes of branch decomposition.
    readers: Loading clusters from pixel and cluster-index files.
    api: Service layer returning JSON-ready dictionaries.
    config: Thresholds, presets and logging set-up.

Example usage:
    Decompose a cluster::

        from track_lib import BranchAnalyzer, Cluster, ClusterSkeletonizer

        cluster = Cluster.from_coordinates([(0, 0), (1, 1), (2, 2), (3, 3)])
        skeleton = ClusterSkeletonizer().skeletonize(cluster)
        result = BranchAnalyzer().analyze(skeleton, cluster)
        for branch in result.main_branches:
            print(branch.anchor, len(branch))

    From the command line::

        python -m track_lib measurement.ini --index 0 --indent 2

Attributes:
    __version__ (str): Package version string.
    __all__ (list): List of public symbols exported by this package.
"""

from .analysis import BranchAnalyzer, ClusterSkeletonizer
from .api import BranchService
from .config import BranchingConfig
from .domain import Branch, BranchedCluster, Cluster, Point

__all__ = [
    # Domain objects
    'Point', 'Cluster', 'Branch', 'BranchedCluster',
    # Analysis
    'BranchAnalyzer', 'ClusterSkeletonizer', 'BranchingConfig',
    # Services
    'BranchService',
]

__version__ = '1.0.0'
