"""
Configuration module for PC-Teams.

Contains the TeamsConfig dataclass with all processing parameters and
the class definitions used by the unsupervised (PCA/k-means) classifier.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class TeamsConfig:
    """Configuration for player clustering and team classification.

    Parameters
    ----------
    verbose : bool
        Print progress information.
    input_file : Path
        Point file with one ``X Y Z R G B`` row per point.
    evaluation_fraction : float
        Probability that a point goes to the evaluation data set.
    pre_clustering : bool
        Run the greedy pre-clustering step. When False every point is its
        own pre-cluster.
    pre_clustering_size : float
        Half-width (length units) of the pre-clustering box in x and z.
    density_window : float
        Half-width of the box used for densities and local maxima.
    seed_density_threshold : float
        Minimum normalized density for a local maximum to seed a cluster.
    cluster_core_size : float
        Outlier cut in units of standard deviations.
    unsupervised : bool
        Use PCA/k-means. When False, use the supervised gradient boosted
        trees model.
    n_layers_per_cluster : int
        Number of vertical layers in the color profile.
    run_training : bool
        Train the supervised model before classifying.
    model_path : Path
        Where the supervised model is saved to / loaded from.
    training_report_path : Path, optional
        JSON file for supervised training metrics. None to skip.
    true_positions_file : Path
        Truth file (``X Z ClassName`` rows) for supervised training.
    training_clusters_split_n : int
        Number of bootstrap sub-clusters drawn per training cluster.
    training_clusters_split_f : float
        Inclusion probability of a point in a bootstrap sub-cluster.
    max_kmeans_iterations : int
        Iteration cap of the k-means step.
    random_seed : int, optional
        Seed of the run's random generator. None for a fresh seed.
    output_dir : Path
        Default output directory for reports and figures.
    """

    verbose: bool = False
    input_file: Path = field(default_factory=lambda: Path("./share/point_cloud_data.txt"))
    evaluation_fraction: float = 0.2

    # Clustering
    pre_clustering: bool = True
    pre_clustering_size: float = 0.2
    density_window: float = 0.5
    seed_density_threshold: float = 0.5
    cluster_core_size: float = 2.0

    # Classification
    unsupervised: bool = True
    n_layers_per_cluster: int = 5
    max_kmeans_iterations: int = 1000

    # Training
    run_training: bool = False
    model_path: Path = field(
        default_factory=lambda: Path("./outputs/weights/teams_bdt.joblib")
    )
    training_report_path: Optional[Path] = None
    true_positions_file: Path = field(
        default_factory=lambda: Path("./share/point_cloud_true_positions.txt")
    )
    training_clusters_split_n: int = 300
    training_clusters_split_f: float = 0.25

    random_seed: Optional[int] = 123

    # Output
    output_dir: Path = field(default_factory=lambda: Path("./output"))

    def __post_init__(self):
        """Validate parameter ranges."""
        if not 0.0 <= self.evaluation_fraction <= 1.0:
            raise ValueError(
                f"evaluation_fraction must be in [0, 1], got {self.evaluation_fraction}"
            )
        if self.n_layers_per_cluster < 1:
            raise ValueError(
                f"n_layers_per_cluster must be >= 1, got {self.n_layers_per_cluster}"
            )
        if self.training_clusters_split_n < 1:
            raise ValueError(
                "training_clusters_split_n must be >= 1, "
                f"got {self.training_clusters_split_n}"
            )
        if not 0.0 < self.training_clusters_split_f <= 1.0:
            raise ValueError(
                "training_clusters_split_f must be in (0, 1], "
                f"got {self.training_clusters_split_f}"
            )
        if self.max_kmeans_iterations < 1:
            raise ValueError(
                f"max_kmeans_iterations must be >= 1, got {self.max_kmeans_iterations}"
            )


# Unsupervised class definitions: two teams and the referees
N_KMEANS_GROUPS = 3

CLASS_NAMES: Dict[int, str] = {
    0: "TeamA",
    1: "TeamB",
    2: "Referees",
}

CLASS_COLORS: Dict[int, str] = {
    -1: "#9E9E9E",  # Gray - Unclassified
    0: "#2196F3",  # Blue - TeamA
    1: "#F44336",  # Red - TeamB
    2: "#212121",  # Black - Referees
}

REFEREE_CLASS_ID = 2

_PATH_FIELDS = ("input_file", "model_path", "true_positions_file", "output_dir")


def load_config(yaml_path: Path) -> TeamsConfig:
    """
    Load configuration from YAML file.

    Parameters
    ----------
    yaml_path : Path
        Path to YAML configuration file.

    Returns
    -------
    TeamsConfig
        Configuration object with values from file.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the YAML file contains invalid configuration.
    """
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with open(yaml_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return TeamsConfig()

    if not isinstance(data, dict):
        raise ValueError(f"Invalid configuration in {yaml_path}: expected a mapping")

    config_dict = _flatten_config(data)

    for key in _PATH_FIELDS:
        if key in config_dict:
            config_dict[key] = Path(config_dict[key])
    if config_dict.get("training_report_path") is not None:
        config_dict["training_report_path"] = Path(config_dict["training_report_path"])

    try:
        return TeamsConfig(**config_dict)
    except TypeError as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: TeamsConfig, yaml_path: Path) -> None:
    """
    Save configuration to YAML file.

    Parameters
    ----------
    config : TeamsConfig
        Configuration object to save.
    yaml_path : Path
        Path to output YAML file.
    """
    data = _unflatten_config(config)

    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    with open(yaml_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _flatten_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten nested YAML structure to flat config dict."""
    result = {}

    # Process nested bootstrap section of training
    if "training" in data and isinstance(data["training"], dict):
        training = dict(data["training"])
        bootstrap = training.pop("bootstrap", None)
        if bootstrap:
            if "count" in bootstrap:
                result["training_clusters_split_n"] = bootstrap["count"]
            if "fraction" in bootstrap:
                result["training_clusters_split_f"] = bootstrap["fraction"]
        result.update(training)

    # Process other top-level keys
    for key, value in data.items():
        if key == "training":
            continue
        if isinstance(value, dict):
            # Flatten simple nested dicts
            for k, v in value.items():
                result[k] = v
        else:
            result[key] = value

    return result


def _unflatten_config(config: TeamsConfig) -> Dict[str, Any]:
    """Convert flat config to nested structure for YAML output."""
    return {
        "verbose": config.verbose,
        "random_seed": config.random_seed,
        "input": {
            "input_file": str(config.input_file),
            "evaluation_fraction": config.evaluation_fraction,
        },
        "clustering": {
            "pre_clustering": config.pre_clustering,
            "pre_clustering_size": config.pre_clustering_size,
            "density_window": config.density_window,
            "seed_density_threshold": config.seed_density_threshold,
            "cluster_core_size": config.cluster_core_size,
        },
        "classification": {
            "unsupervised": config.unsupervised,
            "n_layers_per_cluster": config.n_layers_per_cluster,
            "max_kmeans_iterations": config.max_kmeans_iterations,
        },
        "training": {
            "run_training": config.run_training,
            "model_path": str(config.model_path),
            "training_report_path": (
                str(config.training_report_path)
                if config.training_report_path is not None
                else None
            ),
            "true_positions_file": str(config.true_positions_file),
            "bootstrap": {
                "count": config.training_clusters_split_n,
                "fraction": config.training_clusters_split_f,
            },
        },
        "output": {
            "output_dir": str(config.output_dir),
        },
    }
