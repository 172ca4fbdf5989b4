"""Utility module for spatial indexing."""

from pc_teams.utils.spatial import PlanarIndex

__all__ = [
    "PlanarIndex",
]
