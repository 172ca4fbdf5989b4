"""
Cluster of cloud points.

A Cluster holds an ordered list of CloudPoints together with the
properties the clustering and classification stages attach to it:
center of mass, density, seed position, PCA color, core sub-cluster and
class id. Two derived views are memoized per request parameters and
dropped whenever points are added:

- ``layers(n)``: vertical color profile used as classification feature.
- ``random_split(count, fraction)``: bootstrap sub-clusters used in training.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np

from pc_teams.core.point import CloudPoint, Point

logger = logging.getLogger(__name__)

UNCLASSIFIED = -1


class Cluster:
    """Ordered collection of CloudPoints with derived statistics.

    Parameters
    ----------
    points : iterable of CloudPoint, optional
        Initial points, added in order.

    Attributes
    ----------
    com : Point
        Running center of mass of all points added so far.
    density : float
        Normalized density in [0, 1], set by the clustering pipeline.
    seed : Point
        Representative position assigned by seeded clustering.
    pca_color : Point
        Three leading PCA components of the layer profile.
    class_id : int
        Group index, -1 until classification.
    """

    def __init__(self, points: Optional[Iterable[CloudPoint]] = None):
        self._points: List[CloudPoint] = []
        self.com = Point()
        self.seed = Point()
        self.pca_color = Point()
        self.density = 0.0
        self.class_id = UNCLASSIFIED
        self._core: Optional["Cluster"] = None

        self._layers_cache: Dict[int, List[CloudPoint]] = {}
        self._split_cache: Dict[Tuple[int, float], List["Cluster"]] = {}

        if points is not None:
            self.add_points(points)

    # ------------------------------------------------------------------
    # Point access
    # ------------------------------------------------------------------

    @property
    def points(self) -> List[CloudPoint]:
        """Points in accumulation order (treat as read-only)."""
        return self._points

    @property
    def n_points(self) -> int:
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[CloudPoint]:
        return iter(self._points)

    @property
    def xyz(self) -> np.ndarray:
        """(N, 3) float64 array of point positions."""
        if not self._points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([(p.x, p.y, p.z) for p in self._points], dtype=np.float64)

    @property
    def rgb(self) -> np.ndarray:
        """(N, 3) float64 array of point colors."""
        if not self._points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([p.color for p in self._points], dtype=np.float64)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_point(self, cp: CloudPoint) -> None:
        """Append a point and update the running center of mass."""
        n = len(self._points)
        self.com = Point(
            (self.com.x * n + cp.x) / (n + 1.0),
            (self.com.y * n + cp.y) / (n + 1.0),
            (self.com.z * n + cp.z) / (n + 1.0),
        )
        self._points.append(cp)
        self.invalidate_caches()

    def add_points(self, points: Union["Cluster", Iterable[CloudPoint]]) -> None:
        """Append every point of ``points`` (a Cluster or an iterable).

        The center of mass is folded in with one weighted update, which is
        the same running mean ``add_point`` maintains.
        """
        new_points = list(points)
        if not new_points:
            return

        n = len(self._points)
        m = len(new_points)
        total = np.array([(p.x, p.y, p.z) for p in new_points], dtype=np.float64).sum(axis=0)
        com = (self.com.as_array() * n + total) / (n + m)

        self.com = Point.from_array(com)
        self._points.extend(new_points)
        self.invalidate_caches()

    def invalidate_caches(self) -> None:
        """Drop the memoized layer profiles and bootstrap splits."""
        self._layers_cache.clear()
        self._split_cache.clear()

    # ------------------------------------------------------------------
    # Core sub-cluster
    # ------------------------------------------------------------------

    @property
    def core(self) -> Optional["Cluster"]:
        """Inlier sub-cluster set by outlier removal (None before cleanup)."""
        return self._core

    @core.setter
    def core(self, core: Optional["Cluster"]) -> None:
        if core is self:
            raise ValueError("A cluster cannot be its own core")
        self._core = core

    @property
    def has_core(self) -> bool:
        return self._core is not None

    def require_core(self) -> "Cluster":
        """Return the core, raising if outlier removal has not run."""
        if self._core is None:
            raise ValueError(
                "Cluster has no core. Run cleanup_clusters() before classification."
            )
        return self._core

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def layers(self, n_layers: int) -> List[CloudPoint]:
        """
        Split the cluster into vertical layers.

        Points go to bin ``floor(n_layers * y / y_max)`` clamped to
        ``[0, n_layers - 1]`` where ``y_max`` is the highest point of the
        cluster. Each layer carries the mean y and mean color of its
        points, with x and z taken from the cluster seed. A layer without
        points is logged and left at zero.

        Parameters
        ----------
        n_layers : int
            Number of layers.

        Returns
        -------
        list of CloudPoint
            One summary point per layer, bottom to top.
        """
        if n_layers < 1:
            raise ValueError(f"n_layers must be >= 1, got {n_layers}")

        cached = self._layers_cache.get(n_layers)
        if cached is not None:
            return cached

        sums = np.zeros((n_layers, 4), dtype=np.float64)
        counts = np.zeros(n_layers, dtype=np.int64)

        if self._points:
            xyz = self.xyz
            y = xyz[:, 1]
            y_max = y.max()
            if y_max > 0:
                idx = np.floor(n_layers * y / y_max).astype(np.int64)
                idx = np.clip(idx, 0, n_layers - 1)
            else:
                idx = np.zeros(len(y), dtype=np.int64)

            np.add.at(sums, idx, np.column_stack([y, self.rgb]))
            counts = np.bincount(idx, minlength=n_layers)

        layers = []
        for i in range(n_layers):
            if counts[i] > 0:
                mean = sums[i] / counts[i]
                layers.append(
                    CloudPoint(
                        Point(self.seed.x, float(mean[0]), self.seed.z),
                        (float(mean[1]), float(mean[2]), float(mean[3])),
                    )
                )
            else:
                logger.warning(f"Layer {i} of {n_layers} has no points")
                layers.append(CloudPoint())

        self._layers_cache[n_layers] = layers
        return layers

    def random_split(
        self,
        count: int,
        fraction: float,
        rng: Optional[np.random.Generator] = None,
    ) -> List["Cluster"]:
        """
        Draw bootstrap sub-clusters.

        Every point enters every sub-cluster independently with probability
        ``fraction``, so sub-clusters may overlap and do not partition the
        parent.

        Parameters
        ----------
        count : int
            Number of sub-clusters.
        fraction : float
            Inclusion probability per point and sub-cluster.
        rng : np.random.Generator, optional
            Random generator. A fresh unseeded one is used if omitted.

        Returns
        -------
        list of Cluster
            ``count`` sub-clusters, memoized per (count, fraction).
        """
        key = (int(count), float(fraction))
        cached = self._split_cache.get(key)
        if cached is not None:
            return cached

        if rng is None:
            rng = np.random.default_rng()

        selected = rng.random((count, len(self._points))) < fraction
        splits = []
        for row in selected:
            splits.append(
                Cluster(p for p, keep in zip(self._points, row) if keep)
            )

        self._split_cache[key] = splits
        return splits

    def __repr__(self) -> str:
        return (
            f"Cluster(n_points={len(self._points)}, "
            f"com=({self.com.x:.2f}, {self.com.y:.2f}, {self.com.z:.2f}), "
            f"density={self.density:.3f}, class_id={self.class_id})"
        )
