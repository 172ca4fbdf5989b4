"""
Density-peak seeded clustering.

Local density maxima among the pre-clusters seed the final clusters.
Seeds below the density threshold are treated as noise and merged back,
together with every other pre-cluster, into the nearest accepted seed.
"""

import logging
from typing import Dict, List

import numpy as np

from pc_teams.core.cluster import Cluster
from pc_teams.core.dataset import DataSet
from pc_teams.utils.spatial import PlanarIndex

logger = logging.getLogger(__name__)


def find_local_maxima(pre_clusters: List[Cluster], window: float) -> np.ndarray:
    """
    Flag pre-clusters that are local density maxima.

    A pre-cluster is a local maximum when no pre-cluster inside its box
    window has a strictly greater density. Among neighbors of equal
    density the lowest index wins, so exactly one of a tied group survives.

    Parameters
    ----------
    pre_clusters : list of Cluster
        Pre-clusters with densities set.
    window : float
        Half-width of the box window.

    Returns
    -------
    np.ndarray
        (N,) boolean mask of local maxima.
    """
    if not pre_clusters:
        return np.zeros(0, dtype=bool)

    coms = np.array([(c.com.x, c.com.y, c.com.z) for c in pre_clusters])
    densities = np.array([c.density for c in pre_clusters], dtype=np.float64)
    neighbors = PlanarIndex(coms).query_box(window)

    is_max = np.ones(len(pre_clusters), dtype=bool)
    for i, nb in enumerate(neighbors):
        others = nb[nb != i]
        if others.size == 0:
            continue
        d_others = densities[others]
        if np.any(d_others > densities[i]):
            is_max[i] = False
        elif np.any((d_others == densities[i]) & (others < i)):
            is_max[i] = False

    return is_max


def run_seeded_clustering(
    ds: DataSet,
    window: float,
    seed_density_threshold: float,
) -> Dict[str, int]:
    """
    Build the final clusters from the pre-clusters.

    Steps:

    1. Every local density maximum becomes a seed cluster holding a copy
       of its points, its density, and its center of mass as seed.
    2. Seeds with density below ``seed_density_threshold`` are demoted to
       leftovers (after the non-maxima).
    3. Every leftover, in order, is merged into the accepted cluster with
       the nearest seed (planar distance to the leftover's center of mass,
       earliest cluster on ties).

    Parameters
    ----------
    ds : DataSet
        Data set with pre-clusters and densities. ``ds.clusters`` is replaced.
    window : float
        Half-width of the box window used for local maxima.
    seed_density_threshold : float
        Minimum density of an accepted seed.

    Returns
    -------
    dict
        Counts: 'local_maxima', 'seeds', 'demoted', 'leftovers'.

    Raises
    ------
    ValueError
        If there are pre-clusters but no seed passes the threshold.
    """
    pre_clusters = ds.pre_clusters
    is_max = find_local_maxima(pre_clusters, window)

    seeds = []
    leftovers = []
    for pc, local_max in zip(pre_clusters, is_max):
        if local_max:
            cl = Cluster(pc)
            cl.density = pc.density
            cl.seed = pc.com
            seeds.append(cl)
        else:
            leftovers.append(pc)

    clusters = []
    n_demoted = 0
    for cl in seeds:
        if cl.density < seed_density_threshold:
            leftovers.append(cl)
            n_demoted += 1
        else:
            clusters.append(cl)

    if leftovers and not clusters:
        raise ValueError(
            f"No seed passes the density threshold {seed_density_threshold}; "
            "cannot assign the remaining pre-clusters."
        )

    if leftovers:
        seed_xz = np.array([(cl.seed.x, cl.seed.z) for cl in clusters])
        for lo in leftovers:
            d2 = (seed_xz[:, 0] - lo.com.x) ** 2 + (seed_xz[:, 1] - lo.com.z) ** 2
            clusters[int(np.argmin(d2))].add_points(lo)

    ds.clusters = clusters

    summary = {
        "local_maxima": len(seeds),
        "seeds": len(clusters),
        "demoted": n_demoted,
        "leftovers": len(leftovers),
    }
    logger.info(
        f"Seeded clustering: {summary['local_maxima']} local maxima, "
        f"{summary['seeds']} accepted, {summary['leftovers']} pre-clusters reassigned"
    )
    return summary
