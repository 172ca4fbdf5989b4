"""
PC-Teams: Player clustering and team classification in point clouds.

A Python tool that finds players in a colored point cloud of a playing
field by density-peak clustering, and splits them into two teams and the
referees from the vertical color profile of each player, either
unsupervised (PCA + k-means) or with a supervised boosted-trees model.
"""

__version__ = "0.1.0"

# Import public API
from pc_teams.config import (
    CLASS_COLORS,
    CLASS_NAMES,
    TeamsConfig,
    load_config,
    save_config,
)
from pc_teams.core import CloudPoint, Cluster, DataSet, Point, RunContext
from pc_teams.io import read_point_file, read_true_positions
from pc_teams.clustering import run_clustering
from pc_teams.classification import classify_clusters
from pc_teams.classifier import TeamClassifier, TeamsResult

__all__ = [
    "__version__",
    # Config
    "TeamsConfig",
    "load_config",
    "save_config",
    "CLASS_NAMES",
    "CLASS_COLORS",
    # Data model
    "Point",
    "CloudPoint",
    "Cluster",
    "DataSet",
    "RunContext",
    # I/O
    "read_point_file",
    "read_true_positions",
    # Pipeline
    "run_clustering",
    "classify_clusters",
    "TeamClassifier",
    "TeamsResult",
]
