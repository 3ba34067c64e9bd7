"""Service layer for cluster branch analysis.

Exports:
    BranchService: Thins, decomposes and describes clusters as
        JSON-ready dictionaries.

Example usage:
    from track_lib.api import BranchService

    service = BranchService()
    info = service.describe(cluster)
"""

from .services import BranchService

__all__ = ['BranchService']
