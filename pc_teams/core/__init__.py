"""Core data model: points, clusters and data sets."""

from pc_teams.core.point import (
    FIRST_POINT_ID,
    CloudPoint,
    Point,
    PointIdAllocator,
)
from pc_teams.core.cluster import UNCLASSIFIED, Cluster
from pc_teams.core.dataset import COORDINATE_NAMES, DataSet, RunContext

__all__ = [
    "FIRST_POINT_ID",
    "Point",
    "CloudPoint",
    "PointIdAllocator",
    "UNCLASSIFIED",
    "Cluster",
    "COORDINATE_NAMES",
    "DataSet",
    "RunContext",
]
