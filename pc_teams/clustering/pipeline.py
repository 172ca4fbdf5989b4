"""
Clustering chain: pre-clustering -> densities -> seeded clustering -> cleanup.
"""

import time
from dataclasses import dataclass, field
from typing import Dict

from pc_teams.clustering.cleanup import cleanup_clusters
from pc_teams.clustering.density import compute_densities, run_pre_clustering
from pc_teams.clustering.seeded import run_seeded_clustering
from pc_teams.config import TeamsConfig
from pc_teams.core.dataset import DataSet


@dataclass
class ClusteringResult:
    """Summary of one run of the clustering chain.

    Attributes
    ----------
    dataset_name : str
        Name of the clustered data set.
    n_points : int
        Number of input points.
    n_pre_clusters : int
        Number of pre-clusters.
    n_clusters : int
        Number of final clusters.
    n_outliers : int
        Points left out of the cluster cores.
    seeding : dict
        Counts reported by seeded clustering.
    timing : dict
        Seconds spent per stage.
    """

    dataset_name: str
    n_points: int
    n_pre_clusters: int
    n_clusters: int
    n_outliers: int
    seeding: Dict[str, int] = field(default_factory=dict)
    timing: Dict[str, float] = field(default_factory=dict)


def run_clustering(
    ds: DataSet,
    config: TeamsConfig,
    verbose: bool = False,
) -> ClusteringResult:
    """
    Run the full clustering chain on a data set.

    Parameters
    ----------
    ds : DataSet
        Data set to cluster. Its pre-clusters and clusters are replaced and
        every cluster gets a core.
    config : TeamsConfig
        Clustering parameters.
    verbose : bool
        Print progress information.

    Returns
    -------
    ClusteringResult
        Stage counts and timings.
    """
    timing = {}
    total_start = time.time()

    # Step 1: Pre-clustering
    t0 = time.time()
    n_pre = run_pre_clustering(
        ds,
        size=config.pre_clustering_size,
        enabled=config.pre_clustering,
        show_progress=verbose,
    )
    timing["pre_clustering"] = time.time() - t0
    if verbose:
        print(f"  Pre-clustering done: points are grouped into {n_pre:,} clusters "
              f"({timing['pre_clustering']:.2f}s)")

    # Step 2: Densities
    t0 = time.time()
    compute_densities(ds, window=config.density_window)
    timing["densities"] = time.time() - t0
    if verbose:
        print(f"  Densities computed ({timing['densities']:.2f}s)")

    # Step 3: Seeded clustering
    t0 = time.time()
    seeding = run_seeded_clustering(
        ds,
        window=config.density_window,
        seed_density_threshold=config.seed_density_threshold,
    )
    timing["seeded_clustering"] = time.time() - t0
    if verbose:
        print(f"  Clustering done: {len(ds.clusters):,} clusters "
              f"({timing['seeded_clustering']:.2f}s)")

    # Step 4: Outlier removal
    t0 = time.time()
    n_outliers = cleanup_clusters(ds, core_size=config.cluster_core_size)
    timing["cleanup"] = time.time() - t0
    if verbose:
        print(f"  Cleanup done: {n_outliers:,} outliers removed "
              f"({timing['cleanup']:.2f}s)")

    timing["total"] = time.time() - total_start

    return ClusteringResult(
        dataset_name=ds.name,
        n_points=ds.n_points,
        n_pre_clusters=n_pre,
        n_clusters=len(ds.clusters),
        n_outliers=n_outliers,
        seeding=seeding,
        timing=timing,
    )
