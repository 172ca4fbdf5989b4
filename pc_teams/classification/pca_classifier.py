"""
PCA-based unsupervised classification of player clusters.

Each cluster is described by its vertical color profile (mean r, g, b per
layer). A Principal Component Analysis is trained on bootstrap
sub-clusters of the training cores, every object is projected onto the
three leading components, and k-means with k=3 splits the objects into
two teams and the referees.

Objects entering k-means are the core of every training cluster, each of
its bootstrap sub-clusters, and the core of every evaluation cluster.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler

from pc_teams.config import CLASS_NAMES, N_KMEANS_GROUPS, REFEREE_CLASS_ID, TeamsConfig
from pc_teams.core.cluster import Cluster
from pc_teams.core.dataset import DataSet
from pc_teams.core.point import Point

logger = logging.getLogger(__name__)

# Number of leading PCA components kept as the cluster's PCA color
N_PCA_COMPONENTS = 3

# Squared seed displacement below which k-means is considered converged
KMEANS_TOLERANCE = 0.001


@dataclass
class LayerPCA:
    """Standardization + PCA fitted on layer-profile features.

    Attributes
    ----------
    scaler : StandardScaler
        Per-feature standardization.
    pca : PCA
        Principal components over the full feature space.
    n_layers : int
        Number of layers of the profiles the model was trained on.
    n_training_rows : int
        Number of bootstrap profiles used for training.
    """

    scaler: StandardScaler
    pca: PCA
    n_layers: int
    n_training_rows: int

    @property
    def explained_variance_ratio(self) -> np.ndarray:
        return self.pca.explained_variance_ratio_

    def transform(self, features: np.ndarray) -> np.ndarray:
        """
        Project feature rows onto the leading components.

        Parameters
        ----------
        features : np.ndarray
            (N, 3 * n_layers) layer features.

        Returns
        -------
        np.ndarray
            (N, 3) leading components, zero padded when the model has
            fewer than three components.
        """
        projected = self.pca.transform(self.scaler.transform(features))
        out = np.zeros((len(features), N_PCA_COMPONENTS), dtype=np.float64)
        n = min(N_PCA_COMPONENTS, projected.shape[1])
        out[:, :n] = projected[:, :n]
        return out


@dataclass
class KMeansResult:
    """Results of k-means on PCA colors.

    Attributes
    ----------
    groups : list of list of Cluster
        Members of each group, in input order.
    labels : np.ndarray
        (N,) group index of each input object.
    seeds : np.ndarray
        (k, 3) final group centers in PCA space.
    n_iterations : int
        Iterations performed.
    converged : bool
        True if the seeds stopped moving before the iteration cap.
    """

    groups: List[List[Cluster]]
    labels: np.ndarray
    seeds: np.ndarray
    n_iterations: int
    converged: bool


@dataclass
class PCAClassificationResult:
    """Results from PCA/k-means classification.

    Attributes
    ----------
    class_names : list of str
        Class name per class id.
    n_iterations : int
        K-means iterations.
    converged : bool
        Whether k-means converged.
    group_class_ids : list of int
        Class id given to each k-means group.
    group_sizes : list of int
        Number of objects per k-means group.
    explained_variance_ratio : np.ndarray
        Variance explained by each principal component.
    kmeans_seeds : np.ndarray
        (3, 3) final k-means centers in PCA space.
    n_objects : int
        Number of objects clustered by k-means.
    group_stats : dict
        Statistics for each group.
    timing : dict
        Seconds spent per step.
    """

    class_names: List[str]
    n_iterations: int
    converged: bool
    group_class_ids: List[int]
    group_sizes: List[int]
    explained_variance_ratio: np.ndarray
    kmeans_seeds: np.ndarray
    n_objects: int
    group_stats: Dict = field(default_factory=dict)
    timing: Dict = field(default_factory=dict)


def layer_features(cluster: Cluster, n_layers: int) -> np.ndarray:
    """
    Flatten a cluster's layer profile into a feature vector.

    Parameters
    ----------
    cluster : Cluster
        Cluster to describe.
    n_layers : int
        Number of layers.

    Returns
    -------
    np.ndarray
        (3 * n_layers,) vector ``[r0, g0, b0, r1, g1, b1, ...]``.
    """
    layers = cluster.layers(n_layers)
    return np.array([(p.r, p.g, p.b) for p in layers], dtype=np.float64).ravel()


def bootstrap_features(
    clusters: List[Cluster],
    n_layers: int,
    split_n: int,
    split_f: float,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Layer features of the bootstrap sub-clusters of every cluster core.

    Parameters
    ----------
    clusters : list of Cluster
        Clusters with cores.
    n_layers : int
        Number of layers.
    split_n : int
        Sub-clusters per core.
    split_f : float
        Inclusion probability per point.
    rng : np.random.Generator, optional
        Random generator for the bootstrap draws.

    Returns
    -------
    np.ndarray
        (len(clusters) * split_n, 3 * n_layers) features.
    """
    rows = []
    for cl in clusters:
        for sub in cl.require_core().random_split(split_n, split_f, rng):
            rows.append(layer_features(sub, n_layers))

    if not rows:
        return np.zeros((0, 3 * n_layers), dtype=np.float64)
    return np.vstack(rows)


def train_pca(
    training_clusters: List[Cluster],
    n_layers: int,
    split_n: int,
    split_f: float,
    rng: Optional[np.random.Generator] = None,
) -> LayerPCA:
    """
    Fit the PCA on bootstrap layer profiles of the training clusters.

    Parameters
    ----------
    training_clusters : list of Cluster
        Training clusters with cores.
    n_layers : int
        Number of layers per profile.
    split_n : int
        Bootstrap sub-clusters per training core.
    split_f : float
        Inclusion probability per point.
    rng : np.random.Generator, optional
        Random generator for the bootstrap draws.

    Returns
    -------
    LayerPCA
        Fitted model.

    Raises
    ------
    ValueError
        If there are no training clusters.
    """
    features = bootstrap_features(training_clusters, n_layers, split_n, split_f, rng)
    if len(features) == 0:
        raise ValueError("No training clusters available for PCA training.")

    scaler = StandardScaler()
    features_scaled = scaler.fit_transform(features)

    pca = PCA(n_components=None, svd_solver="full")
    pca.fit(features_scaled)

    logger.info(
        f"PCA trained on {len(features)} profiles; leading components explain "
        f"{pca.explained_variance_ratio_[:N_PCA_COMPONENTS].sum() * 100:.1f}% of the variance"
    )

    return LayerPCA(
        scaler=scaler,
        pca=pca,
        n_layers=n_layers,
        n_training_rows=len(features),
    )


def apply_pca(objects: List[Cluster], model: LayerPCA) -> np.ndarray:
    """
    Set the PCA color of every object.

    Parameters
    ----------
    objects : list of Cluster
        Clusters to project (their own layer profiles are used).
    model : LayerPCA
        Fitted model.

    Returns
    -------
    np.ndarray
        (N, 3) PCA colors in object order.
    """
    if not objects:
        return np.zeros((0, N_PCA_COMPONENTS), dtype=np.float64)

    features = np.vstack([layer_features(obj, model.n_layers) for obj in objects])
    colors = model.transform(features)

    for obj, color in zip(objects, colors):
        obj.pca_color = Point.from_array(color)

    return colors


def assign_to_seeds(colors: np.ndarray, seeds: np.ndarray) -> np.ndarray:
    """
    Assign every color to its nearest seed.

    Parameters
    ----------
    colors : np.ndarray
        (N, 3) PCA colors.
    seeds : np.ndarray
        (k, 3) seeds.

    Returns
    -------
    np.ndarray
        (N,) index of the nearest seed (lowest index on ties).
    """
    d2 = ((colors[:, None, :] - seeds[None, :, :]) ** 2).sum(axis=2)
    return np.argmin(d2, axis=1)


def run_kmeans_on_pca(
    objects: List[Cluster],
    max_iterations: int,
    rng: Optional[np.random.Generator] = None,
    k: int = N_KMEANS_GROUPS,
) -> KMeansResult:
    """
    Lloyd's k-means on the PCA colors of ``objects``.

    Initial seeds are the colors of ``k`` distinct objects drawn
    uniformly (repeats are redrawn). Each iteration assigns every object
    to its nearest seed and moves every seed to the mean of its members;
    a group that loses all its members keeps its seed. Iteration stops
    when no seed moves by more than KMEANS_TOLERANCE (squared distance)
    or after ``max_iterations``.

    Parameters
    ----------
    objects : list of Cluster
        Objects with PCA colors set.
    max_iterations : int
        Iteration cap.
    rng : np.random.Generator, optional
        Random generator for the initial seeds.
    k : int
        Number of groups.

    Returns
    -------
    KMeansResult
        Groups, labels, seeds and iteration count.

    Raises
    ------
    ValueError
        If there are fewer objects than groups.
    """
    n_objects = len(objects)
    if n_objects < k:
        raise ValueError(
            f"Too few objects ({n_objects}) for k-means. Need at least {k}."
        )

    if rng is None:
        rng = np.random.default_rng()

    colors = np.array(
        [(o.pca_color.x, o.pca_color.y, o.pca_color.z) for o in objects],
        dtype=np.float64,
    )

    chosen: List[int] = []
    while len(chosen) < k:
        i = int(rng.integers(n_objects))
        if i not in chosen:
            chosen.append(i)
    seeds = colors[chosen].copy()

    labels = np.zeros(n_objects, dtype=np.int64)
    converged = False
    n_iterations = 0
    while not converged and n_iterations < max_iterations:
        # Assignment step
        labels = assign_to_seeds(colors, seeds)

        # Update step
        converged = True
        for g in range(k):
            members = colors[labels == g]
            if len(members) == 0:
                continue
            new_seed = members.mean(axis=0)
            if np.sum((new_seed - seeds[g]) ** 2) > KMEANS_TOLERANCE:
                converged = False
            seeds[g] = new_seed
        n_iterations += 1

    groups = [[objects[i] for i in np.flatnonzero(labels == g)] for g in range(k)]

    return KMeansResult(
        groups=groups,
        labels=labels,
        seeds=seeds,
        n_iterations=n_iterations,
        converged=converged,
    )


def label_groups(groups: List[List[Cluster]]) -> List[int]:
    """
    Turn k-means groups into class ids.

    The smallest group becomes the referees; the others become TeamA
    and TeamB in group order. Every member's ``class_id`` is set.

    Parameters
    ----------
    groups : list of list of Cluster
        K-means groups.

    Returns
    -------
    list of int
        Class id of each group.
    """
    sizes = [len(g) for g in groups]
    i_referees = int(np.argmin(sizes))

    class_ids = []
    next_team = 0
    for i in range(len(groups)):
        if i == i_referees:
            class_ids.append(REFEREE_CLASS_ID)
        else:
            class_ids.append(next_team)
            next_team += 1

    for group, class_id in zip(groups, class_ids):
        for obj in group:
            obj.class_id = class_id

    return class_ids


def _compute_group_stats(
    groups: List[List[Cluster]],
    class_ids: List[int],
    seeds: np.ndarray,
) -> Dict:
    """Size and PCA-space statistics of each k-means group."""
    n_total = sum(len(g) for g in groups)
    stats = {}

    for g, (group, class_id) in enumerate(zip(groups, class_ids)):
        colors = np.array(
            [(o.pca_color.x, o.pca_color.y, o.pca_color.z) for o in group],
            dtype=np.float64,
        ).reshape(-1, N_PCA_COMPONENTS)
        spread = (
            float(np.sqrt(((colors - seeds[g]) ** 2).sum(axis=1)).mean())
            if len(colors) > 0
            else 0.0
        )
        stats[g] = {
            "class_id": class_id,
            "class_name": CLASS_NAMES[class_id],
            "n_objects": len(group),
            "percentage": 100.0 * len(group) / n_total if n_total > 0 else 0.0,
            "center": [float(v) for v in seeds[g]],
            "mean_distance": spread,
        }

    return stats


def classify_pca(
    training_ds: DataSet,
    evaluation_ds: DataSet,
    config: TeamsConfig,
    rng: Optional[np.random.Generator] = None,
    verbose: bool = False,
) -> PCAClassificationResult:
    """
    Classify the clusters of both data sets with PCA and k-means.

    Parameters
    ----------
    training_ds : DataSet
        Clustered training data (cores required).
    evaluation_ds : DataSet
        Clustered evaluation data (cores required).
    config : TeamsConfig
        Classification parameters.
    rng : np.random.Generator, optional
        Random generator for bootstrap sampling and k-means seeding.
    verbose : bool
        Print progress information.

    Returns
    -------
    PCAClassificationResult
        Classification summary. Class ids are set on every core and
        mirrored onto the owning clusters.
    """
    timing = {}
    n_layers = config.n_layers_per_cluster
    split_n = config.training_clusters_split_n
    split_f = config.training_clusters_split_f

    # Step 1: Train PCA
    t0 = time.time()
    model = train_pca(training_ds.clusters, n_layers, split_n, split_f, rng)
    timing["pca_training"] = time.time() - t0
    if verbose:
        print(f"  PCA training done ({timing['pca_training']:.2f}s)")

    # Step 2: Project every object onto the leading components
    t0 = time.time()
    objects: List[Cluster] = []
    for cl in training_ds.clusters:
        core = cl.require_core()
        objects.append(core)
        objects.extend(core.random_split(split_n, split_f, rng))
    for cl in evaluation_ds.clusters:
        objects.append(cl.require_core())
    apply_pca(objects, model)
    timing["pca_transform"] = time.time() - t0
    if verbose:
        print(f"  PCA transformation done ({timing['pca_transform']:.2f}s)")

    # Step 3: k-means in PCA space
    t0 = time.time()
    kmeans = run_kmeans_on_pca(objects, config.max_kmeans_iterations, rng)
    timing["kmeans"] = time.time() - t0
    if verbose:
        print(f"  K-means converged after {kmeans.n_iterations} iterations "
              f"({timing['kmeans']:.2f}s)")
    if not kmeans.converged:
        logger.warning(
            f"K-means stopped at the iteration cap ({config.max_kmeans_iterations}) "
            "without converging"
        )

    # Step 4: Name the groups and mirror class ids onto the clusters
    class_ids = label_groups(kmeans.groups)
    for ds in (training_ds, evaluation_ds):
        for cl in ds.clusters:
            cl.class_id = cl.require_core().class_id

    return PCAClassificationResult(
        class_names=[CLASS_NAMES[i] for i in sorted(CLASS_NAMES)],
        n_iterations=kmeans.n_iterations,
        converged=kmeans.converged,
        group_class_ids=class_ids,
        group_sizes=[len(g) for g in kmeans.groups],
        explained_variance_ratio=model.explained_variance_ratio,
        kmeans_seeds=kmeans.seeds,
        n_objects=len(objects),
        group_stats=_compute_group_stats(kmeans.groups, class_ids, kmeans.seeds),
        timing=timing,
    )
