"""
Text point file reader for PC-Teams.

Reads whitespace-separated ``X Y Z R G B`` point files into a training
and an evaluation DataSet, and ``X Z ClassName`` truth files into a
class-name to positions mapping.
"""

from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from pc_teams.core.dataset import DataSet, RunContext
from pc_teams.core.point import CloudPoint, Point

POINT_COLUMNS = ["x", "y", "z", "r", "g", "b"]
TRUTH_COLUMNS = ["x", "z", "class_name"]


def _read_table(filepath: Path, columns: List[str]) -> pd.DataFrame:
    """Read a whitespace-separated table as strings, checking the column count."""
    try:
        df = pd.read_csv(
            filepath,
            sep=r"\s+",
            header=None,
            dtype=str,
            engine="python",
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=columns)
    except pd.errors.ParserError as e:
        raise ValueError(f"Malformed file {filepath}: {e}") from e

    if df.shape[1] != len(columns):
        raise ValueError(
            f"Malformed file {filepath}: expected {len(columns)} columns, "
            f"got {df.shape[1]}"
        )

    missing = df.isna().any(axis=1).to_numpy()
    if missing.any():
        row = int(np.flatnonzero(missing)[0]) + 1
        raise ValueError(
            f"Malformed file {filepath}: row {row} has fewer than "
            f"{len(columns)} values"
        )

    df.columns = columns
    return df


def _to_numeric(df: pd.DataFrame, column: str, filepath: Path) -> np.ndarray:
    values = pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=np.float64)
    bad = np.isnan(values)
    if bad.any():
        row = int(np.flatnonzero(bad)[0]) + 1
        raise ValueError(
            f"Malformed file {filepath}: row {row} has non-numeric "
            f"{column} value {df[column].iloc[row - 1]!r}"
        )
    return values


def read_point_file(
    filepath: Path,
    context: RunContext,
    evaluation_fraction: float = 0.2,
) -> Tuple[DataSet, DataSet]:
    """
    Read a point file and split it into training and evaluation data sets.

    Each point is sent to the evaluation set when a uniform draw from the
    run generator is below ``evaluation_fraction``, otherwise to the
    training set. Bounds over (x, y, z, r, g, b) are computed over all
    points and stored on both data sets.

    Parameters
    ----------
    filepath : Path
        Point file with one ``X Y Z R G B`` row per point.
    context : RunContext
        Run context providing the random generator and point identifiers.
    evaluation_fraction : float
        Probability of a point going to the evaluation set.

    Returns
    -------
    training : DataSet
        Training points.
    evaluation : DataSet
        Evaluation points.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If any row is malformed or has a color channel outside [0, 255].
        No data set is produced in that case.
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    df = _read_table(filepath, POINT_COLUMNS)

    xyz = np.column_stack([_to_numeric(df, c, filepath) for c in POINT_COLUMNS[:3]])
    rgb = np.column_stack([_to_numeric(df, c, filepath) for c in POINT_COLUMNS[3:]])

    non_integer = np.any(rgb != np.floor(rgb), axis=1)
    if non_integer.any():
        row = int(np.flatnonzero(non_integer)[0]) + 1
        raise ValueError(
            f"Malformed file {filepath}: row {row} has non-integer color {tuple(rgb[row - 1])}"
        )
    rgb = rgb.astype(np.int64)

    n_points = len(xyz)
    ids = context.ids.allocate_block(n_points)
    points = [
        CloudPoint(Point(*map(float, xyz[i])), tuple(int(c) for c in rgb[i]), int(ids[i]))
        for i in range(n_points)
    ]

    for row, cp in enumerate(points, start=1):
        if not cp.is_valid():
            raise ValueError(f"Invalid data read at row {row} of {filepath}: {cp}")

    to_evaluation = context.rng.random(n_points) < evaluation_fraction

    training = DataSet(name="training")
    evaluation = DataSet(name="evaluation")
    for cp, is_eval in zip(points, to_evaluation):
        if is_eval:
            evaluation.points.append(cp)
        else:
            training.points.append(cp)

    if n_points > 0:
        data = np.column_stack([xyz, rgb.astype(np.float64)])
        mins = data.min(axis=0)
        maxs = data.max(axis=0)
        for ds in (training, evaluation):
            ds.mins = mins.copy()
            ds.maxs = maxs.copy()

    return training, evaluation


def read_true_positions(filepath: Path) -> Dict[str, List[Point]]:
    """
    Read a truth file of player positions.

    Parameters
    ----------
    filepath : Path
        File with one ``X Z ClassName`` row per player.

    Returns
    -------
    dict
        Class name to list of positions ``Point(x, 0, z)``, ordered by
        class name.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If a row is malformed.
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File {filepath} not found")

    df = _read_table(filepath, TRUTH_COLUMNS)
    x = _to_numeric(df, "x", filepath)
    z = _to_numeric(df, "z", filepath)

    positions: Dict[str, List[Point]] = {}
    for xi, zi, name in zip(x, z, df["class_name"]):
        positions.setdefault(name, []).append(Point(float(xi), 0.0, float(zi)))

    return {name: positions[name] for name in sorted(positions)}


def write_point_file(
    filepath: Path,
    xyz: np.ndarray,
    rgb: np.ndarray,
) -> None:
    """
    Write points as ``X Y Z R G B`` rows.

    Parameters
    ----------
    filepath : Path
        Output path.
    xyz : np.ndarray
        (N, 3) positions.
    rgb : np.ndarray
        (N, 3) integer colors.
    """
    if xyz.ndim != 2 or xyz.shape[1] != 3:
        raise ValueError(f"xyz must have shape (N, 3), got {xyz.shape}")
    if rgb.shape != xyz.shape:
        raise ValueError(f"rgb must have shape {xyz.shape}, got {rgb.shape}")

    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(
        {
            "x": xyz[:, 0],
            "y": xyz[:, 1],
            "z": xyz[:, 2],
            "r": rgb[:, 0].astype(np.int64),
            "g": rgb[:, 1].astype(np.int64),
            "b": rgb[:, 2].astype(np.int64),
        }
    )
    df.to_csv(filepath, sep=" ", header=False, index=False, float_format="%.4f")
