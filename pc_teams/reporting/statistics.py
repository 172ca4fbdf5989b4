"""
Statistics computation for clustering and classification results.

Summarizes cluster sizes, outlier counts and the class distribution of
the clusters of a data set.
"""

import numpy as np
from typing import Dict, List, Optional

from pc_teams.config import CLASS_NAMES
from pc_teams.core.cluster import UNCLASSIFIED
from pc_teams.core.dataset import DataSet


def calculate_size_stats(
    sizes: np.ndarray,
    name: str,
    percentiles: tuple = (5, 25, 50, 75, 95),
) -> Dict:
    """
    Calculate summary statistics for an array of cluster sizes.

    Parameters
    ----------
    sizes : np.ndarray
        (N,) array of sizes.
    name : str
        Name of the quantity.
    percentiles : tuple
        Percentiles to calculate.

    Returns
    -------
    dict
        Dictionary with statistics:
        - 'name': Quantity name
        - 'count': Number of values
        - 'mean', 'std', 'min', 'max': Basic statistics (None when empty)
        - 'percentiles': Dict mapping percentile to value
    """
    sizes = np.asarray(sizes, dtype=np.float64)

    if len(sizes) == 0:
        return {
            "name": name,
            "count": 0,
            "mean": None,
            "std": None,
            "min": None,
            "max": None,
            "percentiles": {p: None for p in percentiles},
        }

    return {
        "name": name,
        "count": len(sizes),
        "mean": round(float(np.mean(sizes)), 4),
        "std": round(float(np.std(sizes)), 4),
        "min": round(float(np.min(sizes)), 4),
        "max": round(float(np.max(sizes)), 4),
        "percentiles": {
            p: round(float(np.percentile(sizes, p)), 4) for p in percentiles
        },
    }


def calculate_class_stats(
    class_ids: np.ndarray,
    class_names: Optional[List[str]] = None,
) -> Dict:
    """
    Count clusters per class.

    Parameters
    ----------
    class_ids : np.ndarray
        (N,) class id of each cluster, -1 for unclassified.
    class_names : list of str, optional
        Class name per class id. Defaults to the unsupervised classes.

    Returns
    -------
    dict
        - 'total': Number of clusters
        - 'unclassified': Clusters without a class
        - 'by_class': Dict mapping class id to {'name', 'count', 'percent'}
    """
    if class_names is None:
        class_names = [CLASS_NAMES[i] for i in sorted(CLASS_NAMES)]

    class_ids = np.asarray(class_ids, dtype=np.int64)
    n_total = len(class_ids)

    stats = {
        "total": n_total,
        "unclassified": int((class_ids == UNCLASSIFIED).sum()),
        "by_class": {},
    }

    for class_id, name in enumerate(class_names):
        count = int((class_ids == class_id).sum())
        percent = 100 * count / n_total if n_total > 0 else 0.0
        stats["by_class"][class_id] = {
            "name": name,
            "count": count,
            "percent": round(percent, 2),
        }

    return stats


def calculate_cluster_statistics(
    ds: DataSet,
    class_names: Optional[List[str]] = None,
) -> Dict:
    """
    Calculate all statistics for a clustered data set.

    Parameters
    ----------
    ds : DataSet
        Clustered (and optionally classified) data set.
    class_names : list of str, optional
        Class name per class id.

    Returns
    -------
    dict
        Dictionary with all statistics.
    """
    cluster_sizes = np.array([len(cl) for cl in ds.clusters], dtype=np.int64)
    core_sizes = np.array(
        [len(cl.core) for cl in ds.clusters if cl.has_core], dtype=np.int64
    )
    class_ids = np.array([cl.class_id for cl in ds.clusters], dtype=np.int64)

    n_clustered = int(cluster_sizes.sum())
    n_core = int(core_sizes.sum())

    return {
        "dataset": ds.name,
        "n_points": ds.n_points,
        "n_pre_clusters": len(ds.pre_clusters),
        "n_clusters": len(ds.clusters),
        "n_clustered_points": n_clustered,
        "n_core_points": n_core,
        "n_outliers": n_clustered - n_core if len(core_sizes) else 0,
        "cluster_size": calculate_size_stats(cluster_sizes, "cluster_size"),
        "core_size": calculate_size_stats(core_sizes, "core_size"),
        "classification": calculate_class_stats(class_ids, class_names),
    }
