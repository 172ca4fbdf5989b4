"""Clustering module: pre-clustering, densities, seeded clustering and outlier removal."""

from pc_teams.clustering.density import (
    compute_densities,
    run_pre_clustering,
)

from pc_teams.clustering.seeded import (
    find_local_maxima,
    run_seeded_clustering,
)

from pc_teams.clustering.cleanup import (
    cleanup_clusters,
    compute_shared_covariance,
)

from pc_teams.clustering.pipeline import (
    ClusteringResult,
    run_clustering,
)

__all__ = [
    # Pre-clustering and densities
    "run_pre_clustering",
    "compute_densities",
    # Seeded clustering
    "find_local_maxima",
    "run_seeded_clustering",
    # Outlier removal
    "compute_shared_covariance",
    "cleanup_clusters",
    # Chain
    "ClusteringResult",
    "run_clustering",
]
