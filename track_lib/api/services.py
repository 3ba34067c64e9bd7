"""Service layer for cluster branch analysis.

This module provides the BranchService class, which hides the individual
analysis steps (thinning, decomposition, record building, depth
reconstruction) behind a small dictionary-based interface suitable for
JSON output.

Example usage:
    Describe a cluster::

        from track_lib.api.services import BranchService

        service = BranchService()
        info = service.describe(cluster)
        print(info['branch_count'])

    Describe clusters straight from files, with 3D coordinates::

        for info in service.describe_file('run42/measurement.ini', with_z=True):
            print(info['index'], info['depth_span'], len(info['points_3d']))
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ..analysis.branches import BranchAnalyzer
from ..analysis.depth import DriftConfig, ZCalculator
from ..analysis.energy import EnergyCalculator
from ..analysis.skeleton import ClusterSkeletonizer
from ..config import BranchingConfig
from ..domain.cluster import Cluster
from ..readers import ClusterFileReader, ClusterFormatError

# Logger for service errors
_logger = logging.getLogger(__name__)


class BranchService:
    """High-level interface to branch decomposition.

    The service coordinates:
        - ClusterSkeletonizer to thin the raw cluster
        - BranchAnalyzer to decompose the skeleton
        - EnergyCalculator to fill in per-branch energies
        - ZCalculator to reconstruct relative depth from arrival times

    Attributes:
        skeletonizer: ClusterSkeletonizer instance.
        analyzer: BranchAnalyzer instance.
        energy_calculator: EnergyCalculator instance.
        z_calculator: ZCalculator instance.

    Example:
        >>> service = BranchService(BranchingConfig(max_depth=3))
        >>> service.describe(cluster)['branch_count']
        5
    """

    def __init__(self, config: BranchingConfig | None = None,
                 drift: DriftConfig | None = None):
        self.skeletonizer = ClusterSkeletonizer()
        self.analyzer = BranchAnalyzer(config)
        self.energy_calculator = EnergyCalculator()
        self.z_calculator = ZCalculator(drift)

    def describe(self, cluster: Cluster, max_depth: int | None = None,
                 with_z: bool = False) -> Optional[Dict[str, Any]]:
        """Decompose a cluster and describe its branches.

        Args:
            cluster: Raw cluster; it is thinned before decomposition.
            max_depth: Optional override of the configured depth limit.
            with_z: Also return per-pixel 3D coordinates.

        Returns:
            Dictionary containing:
                - 'index' (int | None): Position of the cluster in its file
                - 'pixel_count' (int): Pixels in the raw cluster
                - 'skeleton_pixels' (int): Pixels after thinning
                - 'total_energy' (float): Energy of the raw cluster
                - 'depth_span' (float): Largest relative depth in the cluster
                - 'center' (list): [x, y] of the seed pixel
                - 'branch_count' (int): Live branch nodes in the tree
                - 'main_branches' (list): Nested branch records
                - 'points_3d' (list): [x, y, z] per raw pixel, only with with_z
            Returns None for an empty cluster.
        """
        if not cluster.points:
            _logger.warning("Empty cluster %s", cluster.index)
            return None

        skeleton = self.skeletonizer.skeletonize(cluster)
        result = self.analyzer.analyze(skeleton, cluster, max_depth=max_depth)
        if result is None:
            return None

        coords = self.z_calculator.transform_points(cluster.points)
        info = {
            'index': cluster.index,
            'pixel_count': cluster.pixel_count,
            'skeleton_pixels': skeleton.pixel_count,
            'total_energy': round(self.energy_calculator.calc_total_energy(cluster.points), 3),
            'depth_span': round(float(coords[:, 2].max()), 3),
            'center': result.center.to_list(),
            'branch_count': result.branch_count,
            'main_branches': [r.to_dict() for r in result.to_records(self.energy_calculator)],
        }
        if with_z:
            info['points_3d'] = [[int(x), int(y), round(float(z), 3)] for x, y, z in coords]
        return info

    def describe_file(self, ini_path: str | Path, index: int | None = None,
                      max_depth: int | None = None,
                      with_z: bool = False) -> Iterator[Dict[str, Any]]:
        """Describe one or all clusters of a measurement.

        Args:
            ini_path: Path to the measurement ini file.
            index: 0-based cluster to describe; None describes all clusters.
            max_depth: Optional override of the configured depth limit.
            with_z: Also return per-pixel 3D coordinates.

        Yields:
            One description per cluster (see describe). Malformed or empty
            clusters are logged and skipped; an unreadable file is logged
            and ends the iteration.
        """
        try:
            reader = ClusterFileReader.from_ini(ini_path)
        except (OSError, ClusterFormatError) as e:
            _logger.error("Cannot open measurement %s: %s", ini_path, e)
            return

        if index is not None:
            try:
                clusters = [reader.load_index(index)]
            except (OSError, IndexError, ClusterFormatError) as e:
                _logger.error("Cannot load cluster %d from %s: %s", index, ini_path, e)
                return
        else:
            clusters = reader.iter_clusters()

        try:
            for cluster in clusters:
                info = self.describe(cluster, max_depth=max_depth, with_z=with_z)
                if info is not None:
                    yield info
        except OSError as e:
            _logger.error("Cannot read clusters from %s: %s", ini_path, e)
