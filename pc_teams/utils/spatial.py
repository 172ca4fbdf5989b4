"""
Spatial indexing utilities for PC-Teams.

Provides the PlanarIndex class wrapping scipy's cKDTree for box-window
neighbor queries in the horizontal (x, z) plane, used by the density
and seeded clustering stages.
"""

from typing import List

import numpy as np
from scipy.spatial import cKDTree


class PlanarIndex:
    """cKDTree over the (x, z) coordinates of 3D positions.

    Box windows are Chebyshev balls: a neighbor lies inside the window of
    half-width ``w`` iff ``|dx| <= w`` and ``|dz| <= w``.

    Parameters
    ----------
    positions : np.ndarray
        (N, 3) array of XYZ positions.

    Attributes
    ----------
    planar : np.ndarray
        (N, 2) array of (x, z) coordinates.
    tree : cKDTree
        Spatial index structure.
    n_points : int
        Number of indexed positions.
    """

    def __init__(self, positions: np.ndarray):
        positions = np.asarray(positions, dtype=np.float64)
        if positions.ndim != 2 or positions.shape[1] != 3:
            raise ValueError(f"Positions must have shape (N, 3), got {positions.shape}")

        self.planar = np.ascontiguousarray(positions[:, [0, 2]])
        self.n_points = len(positions)
        self.tree = cKDTree(self.planar) if self.n_points > 0 else None

    def query_box(self, half_width: float) -> List[np.ndarray]:
        """
        Query the box-window neighbors of every indexed position.

        Parameters
        ----------
        half_width : float
            Half-width of the square window in x and z.

        Returns
        -------
        list of np.ndarray
            Sorted neighbor indices for each position (includes self).
        """
        if self.tree is None:
            return []

        neighbors = self.tree.query_ball_point(self.planar, r=half_width, p=np.inf)
        return [np.array(sorted(n), dtype=np.int64) for n in neighbors]

    def query_box_single(self, x: float, z: float, half_width: float) -> np.ndarray:
        """
        Query indices of positions inside the box around (x, z).

        Parameters
        ----------
        x, z : float
            Window center.
        half_width : float
            Half-width of the square window.

        Returns
        -------
        np.ndarray
            Sorted neighbor indices.
        """
        if self.tree is None:
            return np.zeros(0, dtype=np.int64)

        indices = self.tree.query_ball_point([x, z], r=half_width, p=np.inf)
        return np.array(sorted(indices), dtype=np.int64)
