"""
Data set container for PC-Teams.

A DataSet owns the raw points of one half of a run (training or
evaluation), the pre-clusters and final clusters produced by the
clustering pipeline, and the global (x, y, z, r, g, b) bounds computed
during ingestion.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from pc_teams.core.cluster import Cluster
from pc_teams.core.point import CloudPoint, PointIdAllocator

# Order of the bound coordinates
COORDINATE_NAMES = ("x", "y", "z", "r", "g", "b")


@dataclass
class DataSet:
    """Points and clusters of one data set.

    Parameters
    ----------
    name : str
        Label used in logs and reports ("training" / "evaluation").
    points : list of CloudPoint
        Ingested points.
    pre_clusters : list of Cluster
        Output of pre-clustering.
    clusters : list of Cluster
        Output of seeded clustering.
    mins, maxs : np.ndarray
        (6,) bounds over (x, y, z, r, g, b).
    """

    name: str = "data"
    points: List[CloudPoint] = field(default_factory=list)
    pre_clusters: List[Cluster] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)
    mins: np.ndarray = field(default_factory=lambda: np.zeros(6, dtype=np.float64))
    maxs: np.ndarray = field(default_factory=lambda: np.zeros(6, dtype=np.float64))

    @property
    def n_points(self) -> int:
        return len(self.points)

    def coordinate_min(self, coordinate: int) -> float:
        """Return the minimum of coordinate ``coordinate`` (0-5, see COORDINATE_NAMES)."""
        self._check_coordinate(coordinate)
        return float(self.mins[coordinate])

    def coordinate_max(self, coordinate: int) -> float:
        """Return the maximum of coordinate ``coordinate`` (0-5, see COORDINATE_NAMES)."""
        self._check_coordinate(coordinate)
        return float(self.maxs[coordinate])

    @property
    def bounds(self) -> dict:
        """Return (min, max) per coordinate name."""
        return {
            name: (float(self.mins[i]), float(self.maxs[i]))
            for i, name in enumerate(COORDINATE_NAMES)
        }

    @staticmethod
    def _check_coordinate(coordinate: int) -> None:
        if not 0 <= coordinate < len(COORDINATE_NAMES):
            raise IndexError(
                f"coordinate must be in [0, {len(COORDINATE_NAMES)}), got {coordinate}"
            )

    def clustered_point_count(self) -> int:
        """Total number of points held by the final clusters."""
        return sum(len(cl) for cl in self.clusters)


@dataclass
class RunContext:
    """Per-run state shared by the pipeline stages.

    Parameters
    ----------
    rng : np.random.Generator
        Single random source of the run (data split, bootstrap sampling,
        k-means initialization).
    ids : PointIdAllocator
        Identifier source for ingested points.
    """

    rng: np.random.Generator
    ids: PointIdAllocator = field(default_factory=PointIdAllocator)

    @classmethod
    def from_seed(cls, seed: Optional[int] = None) -> "RunContext":
        """Create a context whose generator is seeded with ``seed``."""
        return cls(rng=np.random.default_rng(seed))
