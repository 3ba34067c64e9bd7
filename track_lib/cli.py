"""Command-line interface for cluster branch analysis.

Decomposes the clusters of a measurement into branches and prints one
JSON document per cluster.

Usage:
    python -m track_lib path/to/measurement.ini
    python -m track_lib path/to/measurement.ini --index 12 --max-depth 3
    python -m track_lib path/to/measurement.ini --index 12 --with-z
    python -m track_lib path/to/measurement.ini --preset conservative --log-level DEBUG
"""

from __future__ import annotations

import argparse
import json
import sys

from .api.services import BranchService
from .config import BranchingConfig, configure_logging

_PRESETS = {
    'default': BranchingConfig,
    'conservative': BranchingConfig.conservative,
    'aggressive': BranchingConfig.aggressive,
}


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog='track_lib',
        description='Decompose detector clusters into branches'
    )
    parser.add_argument('ini', type=str,
                        help='Path to the measurement ini file')
    parser.add_argument('--index', '-i', type=int, default=None,
                        help='0-based cluster to analyze (default: all)')
    parser.add_argument('--max-depth', '-d', type=int, default=None,
                        help='Sub-branch nesting limit (default: from preset)')
    parser.add_argument('--preset', choices=sorted(_PRESETS), default='default',
                        help='Threshold preset (default: default)')
    parser.add_argument('--with-z', action='store_true',
                        help='Include per-pixel x, y, z coordinates')
    parser.add_argument('--indent', type=int, default=None,
                        help='Pretty-print JSON with this indent')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='Log level (default: WARNING)')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write logs to this file')
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Process exit code: 0 if at least one cluster was described,
        1 otherwise.
    """
    args = _create_argument_parser().parse_args(argv)
    configure_logging(level=args.log_level, log_file=args.log_file)

    service = BranchService(_PRESETS[args.preset]())
    described = 0
    infos = service.describe_file(args.ini, index=args.index,
                                  max_depth=args.max_depth, with_z=args.with_z)
    for info in infos:
        print(json.dumps(info, indent=args.indent))
        described += 1

    return 0 if described else 1


if __name__ == '__main__':
    sys.exit(main())
