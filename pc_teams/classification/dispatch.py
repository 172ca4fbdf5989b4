"""
Selection between unsupervised and supervised classification.
"""

from typing import Optional, Union

import numpy as np

from pc_teams.classification.pca_classifier import PCAClassificationResult, classify_pca
from pc_teams.classification.supervised import (
    MVAClassificationResult,
    MVAEngine,
    classify_mva,
)
from pc_teams.config import TeamsConfig
from pc_teams.core.dataset import DataSet


def classify_clusters(
    training_ds: DataSet,
    evaluation_ds: DataSet,
    config: TeamsConfig,
    rng: Optional[np.random.Generator] = None,
    engine: Optional[MVAEngine] = None,
    verbose: bool = False,
) -> Union[PCAClassificationResult, MVAClassificationResult]:
    """
    Classify the clusters of both data sets.

    Uses PCA/k-means when ``config.unsupervised`` is set, the supervised
    engine otherwise. Both paths leave a class id on every evaluation
    cluster and its core.

    Parameters
    ----------
    training_ds : DataSet
        Clustered training data.
    evaluation_ds : DataSet
        Clustered evaluation data.
    config : TeamsConfig
        Classification parameters.
    rng : np.random.Generator, optional
        Random generator shared by all random draws.
    engine : MVAEngine, optional
        Supervised backend. Ignored in unsupervised mode.
    verbose : bool
        Print progress information.

    Returns
    -------
    PCAClassificationResult or MVAClassificationResult
        Summary of the path that ran; ``class_names`` gives the output
        class order.
    """
    if config.unsupervised:
        return classify_pca(training_ds, evaluation_ds, config, rng=rng, verbose=verbose)
    return classify_mva(
        training_ds, evaluation_ds, config, rng=rng, engine=engine, verbose=verbose
    )
