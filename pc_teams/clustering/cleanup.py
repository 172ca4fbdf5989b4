"""
Statistical outlier removal.

A single planar covariance of the point-to-seed offsets is pooled over
all clusters of a data set. Each point whose Mahalanobis distance to its
cluster seed exceeds ``cluster_core_size`` standard deviations is left
out of the cluster's core.
"""

import logging
from typing import List, Tuple

import numpy as np

from pc_teams.core.cluster import Cluster
from pc_teams.core.dataset import DataSet

logger = logging.getLogger(__name__)


def _seed_offsets(cl: Cluster) -> np.ndarray:
    """(N, 2) offsets (seed - point) in x and z."""
    xz = cl.xyz[:, [0, 2]]
    return np.array([cl.seed.x, cl.seed.z]) - xz


def compute_shared_covariance(clusters: List[Cluster]) -> Tuple[float, float, float]:
    """
    Pool the covariance of seed offsets over all points of all clusters.

    Parameters
    ----------
    clusters : list of Cluster
        Clusters with seeds set.

    Returns
    -------
    sxx, szz, sxz : float
        Population covariance terms of the (dx, dz) offsets.

    Raises
    ------
    ValueError
        If the clusters hold no points.
    """
    offsets = [_seed_offsets(cl) for cl in clusters if len(cl) > 0]
    if not offsets:
        raise ValueError("Cannot compute covariance: clusters hold no points")

    d = np.vstack(offsets)
    mean = d.mean(axis=0)
    sxx = float(np.mean(d[:, 0] ** 2) - mean[0] ** 2)
    szz = float(np.mean(d[:, 1] ** 2) - mean[1] ** 2)
    sxz = float(np.mean(d[:, 0] * d[:, 1]) - mean[0] * mean[1])
    return sxx, szz, sxz


def cleanup_clusters(ds: DataSet, core_size: float) -> int:
    """
    Attach an outlier-free core to every cluster.

    Parameters
    ----------
    ds : DataSet
        Data set with final clusters.
    core_size : float
        Cut on the normalized deviation, in standard deviations.

    Returns
    -------
    int
        Number of points removed as outliers.

    Raises
    ------
    ValueError
        If the pooled covariance is singular (all offsets collinear).
    """
    clusters = ds.clusters
    if not clusters:
        return 0

    sxx, szz, sxz = compute_shared_covariance(clusters)
    det = sxx * szz - sxz * sxz
    if not det > 0:
        raise ValueError(
            f"Singular offset covariance (determinant {det:.3g}); "
            "cannot normalize point deviations."
        )

    smax = core_size * core_size
    n_removed = 0

    for cl in clusters:
        offsets = _seed_offsets(cl)
        dx = offsets[:, 0]
        dz = offsets[:, 1]
        ds_norm = (dx * dx * szz + dz * dz * sxx - 2 * dx * dz * sxz) / det
        keep = ds_norm <= smax

        core = Cluster(p for p, selected in zip(cl.points, keep) if selected)
        core.seed = cl.seed
        cl.core = core
        n_removed += int(len(cl) - len(core))

    logger.info(f"Outlier removal: {n_removed} points dropped from cluster cores")
    return n_removed
