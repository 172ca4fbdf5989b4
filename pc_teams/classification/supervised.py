"""
Supervised classification of player clusters.

Training clusters are labeled with the nearest true player position of a
truth file. Bootstrap sub-clusters of their cores, described by their
layer color profiles, train a multivariate classifier (gradient boosted
trees by default), which then predicts the class of each evaluation
cluster core.

The classifier backend is injected through the MVAEngine protocol, so a
different model can be plugged in without touching the pipeline.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

import joblib
import numpy as np
from sklearn.ensemble import GradientBoostingClassifier

from pc_teams.classification.pca_classifier import bootstrap_features, layer_features
from pc_teams.config import TeamsConfig
from pc_teams.core.cluster import Cluster
from pc_teams.core.dataset import DataSet
from pc_teams.core.point import Point
from pc_teams.io.point_reader import read_true_positions

logger = logging.getLogger(__name__)

# Probability that a bootstrap event is used for training rather than testing
TRAIN_FRACTION = 0.5


class MVAEngine(Protocol):
    """Multivariate classifier used by the supervised path."""

    class_names: List[str]

    def train(self, features: np.ndarray, labels: np.ndarray) -> None:
        ...

    def evaluate(self, features: np.ndarray) -> np.ndarray:
        ...


class GradientBoostedEngine:
    """Gradient boosted decision trees over layer color profiles.

    Parameters
    ----------
    class_names : list of str
        Class name per class index.
    n_layers : int
        Number of layers of the profiles the engine works on.
    n_estimators : int
        Number of boosting stages.
    learning_rate : float
        Shrinkage of each tree.
    subsample : float
        Fraction of events used per tree.
    max_depth : int
        Depth of each tree.
    random_state : int, optional
        Seed of the boosting randomness.
    """

    def __init__(
        self,
        class_names: List[str],
        n_layers: int,
        n_estimators: int = 200,
        learning_rate: float = 0.3,
        subsample: float = 0.5,
        max_depth: int = 2,
        random_state: Optional[int] = None,
    ):
        self.class_names = list(class_names)
        self.n_layers = n_layers
        self.model = GradientBoostingClassifier(
            n_estimators=n_estimators,
            learning_rate=learning_rate,
            subsample=subsample,
            max_depth=max_depth,
            random_state=random_state,
        )
        self.train_metadata: Dict[str, Any] = {}
        self.metrics: Dict[str, Any] = {}
        self.is_trained = False

    @property
    def feature_names(self) -> List[str]:
        return [
            f"layer{i}_{channel}"
            for i in range(self.n_layers)
            for channel in ("r", "g", "b")
        ]

    def train(self, features: np.ndarray, labels: np.ndarray) -> None:
        """Fit the trees on (N, 3 * n_layers) features and (N,) class indices."""
        self.model.fit(features, labels)
        self.is_trained = True
        self.train_metadata = {
            "trained_at": datetime.now().isoformat(),
            "n_events": int(len(labels)),
            "class_counts": {
                self.class_names[int(c)]: int(n)
                for c, n in zip(*np.unique(labels, return_counts=True))
            },
        }

    def evaluate(self, features: np.ndarray) -> np.ndarray:
        """
        Per-class scores of each feature row.

        Parameters
        ----------
        features : np.ndarray
            (N, 3 * n_layers) layer features.

        Returns
        -------
        np.ndarray
            (N, n_classes) class probabilities. Classes absent from the
            training labels score zero.
        """
        if not self.is_trained:
            raise RuntimeError("Engine must be trained or loaded before evaluation")

        scores = np.zeros((len(features), len(self.class_names)), dtype=np.float64)
        if len(features) == 0:
            return scores

        proba = self.model.predict_proba(features)
        scores[:, self.model.classes_.astype(np.int64)] = proba
        return scores

    def save(self, path: Union[str, Path]) -> None:
        """Save engine to disk (joblib) with a JSON metadata sidecar.

        Parameters
        ----------
        path : str or Path
            Output path.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        joblib.dump(self, path)
        logger.info(f"Model saved to {path}")

        metadata_path = path.with_suffix(".json")
        metadata = {
            "class_names": self.class_names,
            "n_layers": self.n_layers,
            "feature_names": self.feature_names,
            "feature_importances": (
                dict(zip(self.feature_names, self.model.feature_importances_.tolist()))
                if self.is_trained
                else {}
            ),
            "train_metadata": self.train_metadata,
            "metrics": self.metrics,
            "config": {
                "n_estimators": self.model.n_estimators,
                "learning_rate": self.model.learning_rate,
                "subsample": self.model.subsample,
                "max_depth": self.model.max_depth,
            },
        }
        with open(metadata_path, "w") as f:
            json.dump(metadata, f, indent=2, default=str)
        logger.info(f"Metadata saved to {metadata_path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "GradientBoostedEngine":
        """Load engine from disk.

        Raises
        ------
        FileNotFoundError
            If no model exists at ``path``.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(
                f"Model file not found: {path}. Run with training enabled first."
            )
        return joblib.load(path)


@dataclass
class MVAClassificationResult:
    """Results from supervised classification.

    Attributes
    ----------
    class_names : list of str
        Class name per class index.
    trained : bool
        True if the engine was trained in this run.
    n_train_events : int
        Bootstrap events used for training (0 when loaded).
    n_test_events : int
        Held-out bootstrap events (0 when loaded).
    test_accuracy : float, optional
        Accuracy on held-out events, None if there were none.
    class_counts : dict
        Number of evaluation clusters per class name.
    timing : dict
        Seconds spent per step.
    """

    class_names: List[str]
    trained: bool
    n_train_events: int = 0
    n_test_events: int = 0
    test_accuracy: Optional[float] = None
    class_counts: Dict[str, int] = field(default_factory=dict)
    timing: Dict[str, float] = field(default_factory=dict)


def assign_truth_labels(
    clusters: List[Cluster],
    true_positions: Dict[str, List[Point]],
) -> np.ndarray:
    """
    Label every cluster with the class of the nearest true position.

    The core center of mass of each cluster is compared with every true
    position of every class (planar squared distance); the class index of
    the overall nearest one is set as ``class_id`` on the cluster and its
    core.

    Parameters
    ----------
    clusters : list of Cluster
        Clusters with cores.
    true_positions : dict
        Class name to true positions, in class index order.

    Returns
    -------
    np.ndarray
        (N,) class index of each cluster.
    """
    truth_xz = []
    truth_class = []
    for class_id, positions in enumerate(true_positions.values()):
        for p in positions:
            truth_xz.append((p.x, p.z))
            truth_class.append(class_id)

    if not truth_xz:
        raise ValueError("Truth file holds no positions")

    truth_xz = np.array(truth_xz, dtype=np.float64)
    truth_class = np.array(truth_class, dtype=np.int64)

    labels = np.zeros(len(clusters), dtype=np.int64)
    for i, cl in enumerate(clusters):
        core = cl.require_core()
        d2 = (truth_xz[:, 0] - core.com.x) ** 2 + (truth_xz[:, 1] - core.com.z) ** 2
        labels[i] = truth_class[int(np.argmin(d2))]
        cl.class_id = int(labels[i])
        core.class_id = int(labels[i])

    return labels


def _bootstrap_events(
    clusters: List[Cluster],
    labels: np.ndarray,
    config: TeamsConfig,
    rng: Optional[np.random.Generator],
) -> Tuple[np.ndarray, np.ndarray]:
    """Layer features and labels of all bootstrap sub-clusters."""
    n = config.training_clusters_split_n
    features = bootstrap_features(
        clusters,
        config.n_layers_per_cluster,
        n,
        config.training_clusters_split_f,
        rng,
    )
    event_labels = np.repeat(labels, n)
    return features, event_labels


def train_mva(
    training_ds: DataSet,
    config: TeamsConfig,
    rng: Optional[np.random.Generator] = None,
    engine: Optional[MVAEngine] = None,
) -> Tuple[MVAEngine, Dict[str, Any]]:
    """
    Train the supervised engine on the training clusters.

    Parameters
    ----------
    training_ds : DataSet
        Clustered training data (cores required).
    config : TeamsConfig
        Training parameters (truth file, bootstrap, model path).
    rng : np.random.Generator, optional
        Random generator for bootstrap sampling and the train/test split.
    engine : MVAEngine, optional
        Engine to train. A GradientBoostedEngine is created if omitted.

    Returns
    -------
    engine : MVAEngine
        Trained engine.
    metrics : dict
        'n_train_events', 'n_test_events', 'test_accuracy'.
    """
    if rng is None:
        rng = np.random.default_rng()

    true_positions = read_true_positions(config.true_positions_file)
    class_names = list(true_positions)

    if not training_ds.clusters:
        raise ValueError("No training clusters available for supervised training.")

    labels = assign_truth_labels(training_ds.clusters, true_positions)
    features, event_labels = _bootstrap_events(
        training_ds.clusters, labels, config, rng
    )

    in_train = rng.random(len(event_labels)) < TRAIN_FRACTION
    if not np.any(in_train):
        in_train[:] = True

    if engine is None:
        engine = GradientBoostedEngine(
            class_names,
            config.n_layers_per_cluster,
            random_state=int(rng.integers(2**31 - 1)),
        )

    engine.train(features[in_train], event_labels[in_train])

    n_test = int(np.sum(~in_train))
    test_accuracy = None
    if n_test > 0:
        scores = engine.evaluate(features[~in_train])
        predicted = np.argmax(scores, axis=1)
        test_accuracy = float(np.mean(predicted == event_labels[~in_train]))
        logger.info(
            f"Supervised training: held-out accuracy {test_accuracy * 100:.1f}% "
            f"on {n_test} events"
        )

    metrics = {
        "n_train_events": int(np.sum(in_train)),
        "n_test_events": n_test,
        "test_accuracy": test_accuracy,
        "class_names": class_names,
        "n_training_clusters": len(training_ds.clusters),
    }

    if isinstance(engine, GradientBoostedEngine):
        engine.metrics = metrics
        engine.save(config.model_path)

    if config.training_report_path is not None:
        report_path = Path(config.training_report_path)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "w") as f:
            json.dump(metrics, f, indent=2)

    return engine, metrics


def classify_mva(
    training_ds: DataSet,
    evaluation_ds: DataSet,
    config: TeamsConfig,
    rng: Optional[np.random.Generator] = None,
    engine: Optional[MVAEngine] = None,
    verbose: bool = False,
) -> MVAClassificationResult:
    """
    Classify the evaluation clusters with the supervised engine.

    The engine is trained first if ``config.run_training`` is set;
    otherwise the given engine is used, or one is loaded from
    ``config.model_path``.

    Parameters
    ----------
    training_ds : DataSet
        Clustered training data (used only when training).
    evaluation_ds : DataSet
        Clustered evaluation data (cores required).
    config : TeamsConfig
        Classification parameters.
    rng : np.random.Generator, optional
        Random generator for training.
    engine : MVAEngine, optional
        Engine to train or use.
    verbose : bool
        Print progress information.

    Returns
    -------
    MVAClassificationResult
        Classification summary. Each evaluation cluster and its core get
        the arg-max class of the engine scores.
    """
    timing = {}
    metrics: Dict[str, Any] = {}

    t0 = time.time()
    if config.run_training:
        engine, metrics = train_mva(training_ds, config, rng, engine)
        timing["training"] = time.time() - t0
        if verbose:
            print(f"  MVA training done ({timing['training']:.2f}s)")
    elif engine is None:
        engine = GradientBoostedEngine.load(config.model_path)
        timing["loading"] = time.time() - t0
        if verbose:
            print(f"  Loaded model from {config.model_path}")

    n_layers = getattr(engine, "n_layers", config.n_layers_per_cluster)
    if n_layers != config.n_layers_per_cluster:
        raise ValueError(
            f"Model was trained on {n_layers} layers but configuration "
            f"asks for {config.n_layers_per_cluster}"
        )

    t0 = time.time()
    cores = [cl.require_core() for cl in evaluation_ds.clusters]
    if cores:
        features = np.vstack(
            [layer_features(core, config.n_layers_per_cluster) for core in cores]
        )
        predicted = np.argmax(engine.evaluate(features), axis=1)
    else:
        predicted = np.zeros(0, dtype=np.int64)

    for cl, core, class_id in zip(evaluation_ds.clusters, cores, predicted):
        core.class_id = int(class_id)
        cl.class_id = int(class_id)
    timing["evaluation"] = time.time() - t0

    class_counts = {
        name: int(np.sum(predicted == i)) for i, name in enumerate(engine.class_names)
    }
    if verbose:
        print(f"  MVA evaluation done ({timing['evaluation']:.2f}s)")

    return MVAClassificationResult(
        class_names=list(engine.class_names),
        trained=bool(config.run_training),
        n_train_events=metrics.get("n_train_events", 0),
        n_test_events=metrics.get("n_test_events", 0),
        test_accuracy=metrics.get("test_accuracy"),
        class_counts=class_counts,
        timing=timing,
    )
