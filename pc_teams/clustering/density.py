"""
Pre-clustering and density estimation.

Pre-clustering greedily groups points into small boxes so that the
density and seeding stages work on a few thousand pre-clusters instead of
every point. Densities count the points of all pre-clusters inside a box
window around each pre-cluster and are normalized to the densest one.
"""

import logging

import numpy as np
from tqdm import tqdm

from pc_teams.core.cluster import Cluster
from pc_teams.core.dataset import DataSet
from pc_teams.utils.spatial import PlanarIndex

logger = logging.getLogger(__name__)


def run_pre_clustering(
    ds: DataSet,
    size: float,
    enabled: bool = True,
    show_progress: bool = False,
) -> int:
    """
    Group points into pre-clusters.

    Points are visited in input order. A point joins the first pre-cluster
    (in creation order) whose center of mass lies within ``size`` of the
    point in both x and z; otherwise it starts a new pre-cluster. The
    result depends on input order, which is acceptable because it only
    seeds the later stages.

    Parameters
    ----------
    ds : DataSet
        Data set whose points are grouped. ``ds.pre_clusters`` is replaced.
    size : float
        Half-width of the box test.
    enabled : bool
        If False, every point becomes its own pre-cluster.
    show_progress : bool
        If True, display progress bar.

    Returns
    -------
    int
        Number of pre-clusters.
    """
    clusters = []
    # (x, z) of every pre-cluster center, kept in step with the clusters
    coms = np.empty((max(len(ds.points), 1), 2), dtype=np.float64)

    for cp in tqdm(ds.points, desc="Pre-clustering", disable=not show_progress):
        icl = -1
        n = len(clusters)
        if enabled and n > 0:
            inside = (np.abs(coms[:n, 0] - cp.x) <= size) & (np.abs(coms[:n, 1] - cp.z) <= size)
            hits = np.flatnonzero(inside)
            if hits.size > 0:
                icl = int(hits[0])

        if icl >= 0:
            cl = clusters[icl]
            cl.add_point(cp)
        else:
            cl = Cluster()
            cl.add_point(cp)
            clusters.append(cl)
            icl = n
        coms[icl] = (cl.com.x, cl.com.z)

    ds.pre_clusters = clusters
    logger.info(f"Pre-clustering: {len(ds.points)} points -> {len(clusters)} pre-clusters")
    return len(clusters)


def compute_densities(ds: DataSet, window: float) -> np.ndarray:
    """
    Compute normalized densities of the pre-clusters.

    The raw density of pre-cluster ``i`` is the number of points held by
    all pre-clusters (``i`` included) whose center of mass lies within
    ``window`` of the center of ``i`` in both x and z. Densities are then
    divided by the maximum so the densest pre-cluster has density 1.0.

    Parameters
    ----------
    ds : DataSet
        Data set with pre-clusters. Each pre-cluster's ``density`` is set.
    window : float
        Half-width of the box window.

    Returns
    -------
    np.ndarray
        (N,) normalized densities in pre-cluster order.
    """
    pre_clusters = ds.pre_clusters
    if not pre_clusters:
        return np.zeros(0, dtype=np.float64)

    coms = np.array([(c.com.x, c.com.y, c.com.z) for c in pre_clusters])
    counts = np.array([len(c) for c in pre_clusters], dtype=np.float64)

    neighbors = PlanarIndex(coms).query_box(window)
    raw = np.array([counts[nb].sum() for nb in neighbors], dtype=np.float64)

    # every pre-cluster counts its own points, so the maximum is positive
    densities = raw / raw.max()

    for cl, density in zip(pre_clusters, densities):
        cl.density = float(density)

    return densities
