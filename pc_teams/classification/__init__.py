"""Classification module: PCA/k-means and supervised team classification."""

from pc_teams.classification.pca_classifier import (
    KMeansResult,
    LayerPCA,
    PCAClassificationResult,
    apply_pca,
    assign_to_seeds,
    bootstrap_features,
    classify_pca,
    label_groups,
    layer_features,
    run_kmeans_on_pca,
    train_pca,
)

from pc_teams.classification.supervised import (
    GradientBoostedEngine,
    MVAClassificationResult,
    MVAEngine,
    assign_truth_labels,
    classify_mva,
    train_mva,
)

from pc_teams.classification.dispatch import classify_clusters

__all__ = [
    # PCA-based
    "layer_features",
    "bootstrap_features",
    "LayerPCA",
    "train_pca",
    "apply_pca",
    "KMeansResult",
    "assign_to_seeds",
    "run_kmeans_on_pca",
    "label_groups",
    "PCAClassificationResult",
    "classify_pca",
    # Supervised
    "MVAEngine",
    "GradientBoostedEngine",
    "MVAClassificationResult",
    "assign_truth_labels",
    "train_mva",
    "classify_mva",
    # Dispatch
    "classify_clusters",
]
