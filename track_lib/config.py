"""Shared configuration for branch decomposition.

This module centralizes the thresholds used by the decomposition passes:
    - analysis.branches (depth and branch-count budgets, trivial length)
    - analysis.merge (regression window, angle threshold, anchor distance)
    - analysis.crosspoints (junction neighbour count)

It also provides configure_logging(), which the command-line entry point
calls before any analysis runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decomposition Threshold Constants
# ---------------------------------------------------------------------------

# Own-path length at or below which a branch counts as noise
TRIVIAL_BRANCH_LENGTH = 3

# Maximum sub-branch nesting below a main branch
DEFAULT_MAX_DEPTH = 4

# Maximum number of branch nodes created by one analysis
DEFAULT_MAX_BRANCH_COUNT = 64

# Number of leading path points fed to the continuity regression
REGRESSION_POINTS = 15

# Maximum angle (radians) between two fitted slopes for a merge
MERGE_ANGLE_THRESHOLD = 0.35

# Maximum Chebyshev distance between a main anchor and a merged sub-branch anchor
MERGE_ANCHOR_DISTANCE = 3

# Minimum neighbour count for a pixel to be a junction
JUNCTION_NEIGHBOUR_COUNT = 3


@dataclass
class BranchingConfig:
    """Tuning parameters for one BranchAnalyzer.

    Attributes:
        max_depth: Maximum nesting depth of sub-branches.
        max_branch_count: Global cap on branch nodes per analysis.
        trivial_branch_length: Path length treated as noise.
        regression_points: Leading points used by the continuity test.
        merge_angle: Angle threshold in radians for the continuity test.
        merge_anchor_distance: Anchor distance allowed for a
            main/sub-branch merge.
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    max_branch_count: int = DEFAULT_MAX_BRANCH_COUNT
    trivial_branch_length: int = TRIVIAL_BRANCH_LENGTH
    regression_points: int = REGRESSION_POINTS
    merge_angle: float = MERGE_ANGLE_THRESHOLD
    merge_anchor_distance: int = MERGE_ANCHOR_DISTANCE

    def validate(self) -> BranchingConfig:
        """Check the values and return self.

        Raises:
            ValueError: If a budget or threshold is out of range.
        """
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_branch_count < 1:
            raise ValueError(f"max_branch_count must be >= 1, got {self.max_branch_count}")
        if self.trivial_branch_length < 0:
            raise ValueError(
                f"trivial_branch_length must be >= 0, got {self.trivial_branch_length}")
        if self.regression_points < 2:
            raise ValueError(f"regression_points must be >= 2, got {self.regression_points}")
        if self.merge_angle <= 0:
            raise ValueError(f"merge_angle must be positive, got {self.merge_angle}")
        return self

    @classmethod
    def conservative(cls) -> BranchingConfig:
        """Shallow trees and strict merging."""
        return cls(max_depth=2, max_branch_count=16, merge_angle=0.2)

    @classmethod
    def aggressive(cls) -> BranchingConfig:
        """Deep trees and lenient merging."""
        return cls(max_depth=6, max_branch_count=256, merge_angle=0.5)


def configure_logging(level: str = 'INFO', log_file: str | None = None) -> None:
    """Configure application-wide logging.

    Args:
        level: Log level string ('DEBUG', 'INFO', 'WARNING', 'ERROR').
        log_file: Optional path to log file. If None, logs to stderr only.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s %(levelname)-8s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logger.info("Logging configured: level=%s, file=%s", level, log_file or 'stderr')
