"""
Shared pytest fixtures for PC-Teams tests.

These fixtures provide consistent test data across all test modules.
"""

import importlib.util
import numpy as np
import pytest
from pathlib import Path
from typing import List

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def load_generator():
    """Import scripts/generate_test_data.py as a module."""
    spec = importlib.util.spec_from_file_location(
        "generate_test_data", SCRIPTS_DIR / "generate_test_data.py"
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


# =============================================================================
# Point and Cluster Fixtures
# =============================================================================

def make_points(xyz: np.ndarray, rgb: np.ndarray, first_id: int = 0) -> List:
    """Build CloudPoints from position and color arrays."""
    from pc_teams.core.point import CloudPoint, Point

    return [
        CloudPoint(Point(*map(float, p)), tuple(int(c) for c in color), first_id + i)
        for i, (p, color) in enumerate(zip(xyz, rgb))
    ]


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_points():
    """100 random points in a 1x2x1 column with random colors."""
    rng = np.random.default_rng(42)
    xyz = rng.uniform(0, 1, (100, 3)) * np.array([1.0, 2.0, 1.0])
    rgb = rng.integers(0, 256, (100, 3))
    return make_points(xyz, rgb)


@pytest.fixture
def simple_cluster(simple_points):
    """Cluster holding the simple points."""
    from pc_teams.core.cluster import Cluster

    return Cluster(simple_points)


# =============================================================================
# Data Set Fixtures
# =============================================================================

@pytest.fixture
def two_blob_dataset():
    """
    Two tight blobs of 50 points each (within +-0.05 in x and z) at
    (0, 0) and (5, 5).
    """
    from pc_teams.core.dataset import DataSet

    rng = np.random.default_rng(42)
    n = 50
    blobs = []
    for cx, cz in [(0.0, 0.0), (5.0, 5.0)]:
        offsets = rng.uniform(-0.05, 0.05, (n, 2))
        y = rng.uniform(0, 1.8, n)
        blobs.append(np.column_stack([cx + offsets[:, 0], y, cz + offsets[:, 1]]))
    xyz = np.vstack(blobs)
    rgb = rng.integers(0, 256, (2 * n, 3))

    return DataSet(name="blobs", points=make_points(xyz, rgb))


@pytest.fixture
def synthetic_field():
    """Small field: 3 players per team and 2 referees, 200 points each."""
    generator = load_generator()
    return generator.generate_field(
        n_players_per_team=3,
        n_referees=2,
        points_per_player=200,
        seed=7,
    )


@pytest.fixture
def field_dataset(synthetic_field):
    """All points of the synthetic field in one data set."""
    from pc_teams.core.dataset import DataSet

    return DataSet(
        name="field",
        points=make_points(synthetic_field["xyz"], synthetic_field["rgb"]),
    )


# =============================================================================
# File Fixtures
# =============================================================================

@pytest.fixture
def field_files(tmp_path, synthetic_field):
    """Point file and truth file of the synthetic field."""
    generator = load_generator()
    point_path = tmp_path / "point_cloud_data.txt"
    truth_path = tmp_path / "point_cloud_true_positions.txt"
    generator.save_field(synthetic_field, point_path, truth_path)
    return point_path, truth_path


@pytest.fixture
def clustered_field(field_files, fast_config):
    """Training and evaluation data sets of the field, clustered, plus the run context."""
    from pc_teams.clustering.pipeline import run_clustering
    from pc_teams.core.dataset import RunContext
    from pc_teams.io.point_reader import read_point_file

    point_path, truth_path = field_files
    fast_config.true_positions_file = truth_path

    context = RunContext.from_seed(123)
    training, evaluation = read_point_file(point_path, context, 0.2)
    run_clustering(training, fast_config)
    run_clustering(evaluation, fast_config)
    return training, evaluation, context


@pytest.fixture
def small_point_file(tmp_path) -> Path:
    """Point file with four valid rows."""
    filepath = tmp_path / "points.txt"
    filepath.write_text(
        "0.0 0.5 0.0 10 20 30\n"
        "1.0 1.0 1.0 255 0 0\n"
        "2.5 0.1 -1.5 0 255 0\n"
        "-3.0 1.7 4.0 0 0 255\n"
    )
    return filepath


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def default_config():
    """Default configuration."""
    from pc_teams.config import TeamsConfig
    return TeamsConfig()


@pytest.fixture
def fast_config(tmp_path):
    """Configuration with few bootstrap splits for quick runs."""
    from pc_teams.config import TeamsConfig
    return TeamsConfig(
        training_clusters_split_n=20,
        model_path=tmp_path / "weights" / "teams_bdt.joblib",
        output_dir=tmp_path / "output",
    )


# =============================================================================
# Utility Fixtures
# =============================================================================

@pytest.fixture
def output_dir(tmp_path) -> Path:
    """Create a temporary output directory."""
    out = tmp_path / "output"
    out.mkdir()
    return out


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
