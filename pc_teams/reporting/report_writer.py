"""
Report generation for team classification results.

Formats the per-class player positions for the console and writes a
JSON report with positions, statistics, timings and configuration.
"""

import json
from dataclasses import asdict, fields, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import numpy as np

from pc_teams.config import TeamsConfig

if TYPE_CHECKING:
    from pc_teams.classifier import TeamsResult


def format_class_positions(result: "TeamsResult") -> List[str]:
    """
    Format the player positions of each class, one line per class.

    Lines look like ``TeamA: [[1.23, 4.56], [7.80, 9.01]]`` with positions
    given as ``[x, z]`` with two decimals, classes in class order.

    Parameters
    ----------
    result : TeamsResult
        Processing result.

    Returns
    -------
    list of str
        One line per class.
    """
    lines = []
    for name in result.class_names:
        positions = result.class_positions.get(name, [])
        body = ", ".join(f"[{x:.2f}, {z:.2f}]" for x, z in positions)
        lines.append(f"{name}: [{body}]")
    return lines


def generate_config_summary(config: TeamsConfig) -> Dict[str, Any]:
    """
    Generate a JSON-friendly configuration summary.

    Parameters
    ----------
    config : TeamsConfig
        Configuration used for the run.

    Returns
    -------
    dict
        Field name to value, paths as strings.
    """
    summary = {}
    for f in fields(config):
        value = getattr(config, f.name)
        summary[f.name] = str(value) if isinstance(value, Path) else value
    return summary


def _to_serializable(obj: Any) -> Any:
    """Convert numpy values and dataclasses for json.dump."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, Path):
        return str(obj)
    if is_dataclass(obj):
        return asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json_report(
    result: "TeamsResult",
    output_path: Path,
    config_summary: Optional[Dict] = None,
) -> Path:
    """
    Write a JSON report of a processing result.

    Parameters
    ----------
    result : TeamsResult
        Processing result.
    output_path : Path
        Output file path.
    config_summary : dict, optional
        Configuration parameters to include.

    Returns
    -------
    Path
        Path of the written report.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    report = {
        "source_file": result.source_file,
        "generated_at": datetime.now().isoformat(),
        "mode": result.mode,
        "class_names": result.class_names,
        "class_positions": {
            name: [[round(x, 4), round(z, 4)] for x, z in positions]
            for name, positions in result.class_positions.items()
        },
        "n_training_points": result.n_training_points,
        "n_evaluation_points": result.n_evaluation_points,
        "training_clustering": asdict(result.training_clustering),
        "evaluation_clustering": asdict(result.evaluation_clustering),
        "classification": result.classification,
        "statistics": result.statistics,
        "timing": {k: round(v, 4) for k, v in result.timing.items()},
    }
    if config_summary is not None:
        report["config"] = config_summary

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=_to_serializable)

    return output_path
