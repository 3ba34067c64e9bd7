"""Cluster thinning.

This module provides the ClusterSkeletonizer class, which thins a detector
cluster to a one-pixel-wide skeleton before branch decomposition. Topology
is computed on the skeleton; energies stay attached to the surviving pixels.

The skeletonizer uses scikit-image for morphological thinning:
    1. Rasterise the cluster into a boolean mask with a one pixel margin
    2. Skeletonize the mask
    3. Map skeleton pixels back to the cluster's own Point instances

Example usage:
    Thin a cluster::

        from track_lib.analysis.skeleton import ClusterSkeletonizer

        skeletonizer = ClusterSkeletonizer()
        skeleton = skeletonizer.skeletonize(cluster)
        print(f"{cluster.pixel_count} -> {skeleton.pixel_count} pixels")
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
from skimage.morphology import skeletonize

from ..domain.cluster import Cluster

logger = logging.getLogger(__name__)

# Empty border around the rasterised cluster so thinning sees a background
MASK_MARGIN = 1


class ClusterSkeletonizer:
    """Thins clusters to one-pixel-wide skeletons."""

    def to_mask(self, cluster: Cluster) -> Tuple[np.ndarray, int, int]:
        """Rasterise a cluster.

        Args:
            cluster: Cluster with at least one point.

        Returns:
            Tuple of (mask, x0, y0) where mask is a boolean array indexed
            [y, x] and (x0, y0) is the grid coordinate of mask[0, 0].
        """
        xs = np.array([p.x for p in cluster.points], dtype=np.int64)
        ys = np.array([p.y for p in cluster.points], dtype=np.int64)
        x0 = int(xs.min()) - MASK_MARGIN
        y0 = int(ys.min()) - MASK_MARGIN
        width = int(xs.max()) - x0 + 1 + MASK_MARGIN
        height = int(ys.max()) - y0 + 1 + MASK_MARGIN

        mask = np.zeros((height, width), dtype=bool)
        mask[ys - y0, xs - x0] = True
        return mask, x0, y0

    def skeletonize(self, cluster: Cluster) -> Cluster:
        """Skeleton of a cluster as a new Cluster.

        Clusters with fewer than three pixels are already thin and are
        returned as they are. If thinning removes every pixel the original
        cluster is returned.

        Args:
            cluster: Cluster to thin.

        Returns:
            Cluster holding the skeleton pixels, in the original point order
            and with their energy and arrival time.
        """
        if cluster.pixel_count < 3:
            return cluster

        mask, x0, y0 = self.to_mask(cluster)
        skel = skeletonize(mask)
        kept = [p for p in cluster.points if skel[p.y - y0, p.x - x0]]

        if not kept:
            logger.warning("Skeletonization removed all %d pixels, keeping cluster", cluster.pixel_count)
            return cluster

        logger.debug("Skeletonized %d -> %d pixels", cluster.pixel_count, len(kept))
        return cluster.with_points(kept)
