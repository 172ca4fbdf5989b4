#!/usr/bin/env python3
"""
Generate a synthetic playing field for testing PC-Teams.

Players are vertical columns of points standing on the (x, z) plane, with
a color profile given by their kit: skin-colored legs, shorts, shirt and
head from bottom to top. Two teams and the referees wear different kits,
so the classification result can be validated against the truth file
written next to the point file.

Usage:
    python scripts/generate_test_data.py --output share/
    python scripts/generate_test_data.py --players 6 --points 400 --output field/
"""

import argparse
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np

from pc_teams.io.point_reader import write_point_file

SKIN = (200, 160, 130)

# Kit colors: (shorts, shirt)
KITS: Dict[str, Tuple[Tuple[int, int, int], Tuple[int, int, int]]] = {
    "TeamA": ((240, 240, 240), (220, 40, 40)),
    "TeamB": ((20, 20, 20), (40, 60, 210)),
    "Referees": ((20, 20, 20), (240, 220, 30)),
}

PLAYER_HEIGHT = 1.8

# Heights separating legs / shorts / shirt / head
KIT_BOUNDARIES = (0.5, 0.9, 1.5)


def generate_player(
    center: Tuple[float, float],
    kit: str,
    n_points: int,
    rng: np.random.Generator,
    spread: float = 0.05,
    color_noise: float = 8.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate the points of one player.

    Planar offsets are Gaussian with ``spread`` and clipped to three
    spreads, so every point lies within ``3 * spread`` of the center.

    Returns
    -------
    xyz : np.ndarray
        (N, 3) positions.
    rgb : np.ndarray
        (N, 3) integer colors.
    """
    offsets = np.clip(rng.normal(0, spread, (n_points, 2)), -3 * spread, 3 * spread)
    y = rng.uniform(0, PLAYER_HEIGHT, n_points)
    xyz = np.column_stack([center[0] + offsets[:, 0], y, center[1] + offsets[:, 1]])

    shorts, shirt = KITS[kit]
    band = np.digitize(y, KIT_BOUNDARIES)
    palette = np.array([SKIN, shorts, shirt, SKIN], dtype=np.float64)
    rgb = palette[band] + rng.normal(0, color_noise, (n_points, 3))
    rgb = np.clip(np.round(rgb), 0, 255).astype(np.int64)

    return xyz, rgb


def generate_field(
    n_players_per_team: int = 5,
    n_referees: int = 2,
    points_per_player: int = 250,
    spacing: float = 3.0,
    seed: int = 42,
) -> dict:
    """
    Generate a field of players on a regular grid.

    Returns
    -------
    dict
        'xyz', 'rgb': point arrays in random order; 'truth': list of
        (x, z, class_name) player positions.
    """
    rng = np.random.default_rng(seed)

    kits = (
        ["TeamA"] * n_players_per_team
        + ["TeamB"] * n_players_per_team
        + ["Referees"] * n_referees
    )
    n_cols = int(np.ceil(np.sqrt(len(kits))))

    all_xyz = []
    all_rgb = []
    truth: List[Tuple[float, float, str]] = []
    for i, kit in enumerate(kits):
        center = (spacing * (i % n_cols), spacing * (i // n_cols))
        xyz, rgb = generate_player(center, kit, points_per_player, rng)
        all_xyz.append(xyz)
        all_rgb.append(rgb)
        truth.append((center[0], center[1], kit))

    xyz = np.vstack(all_xyz)
    rgb = np.vstack(all_rgb)
    order = rng.permutation(len(xyz))

    return {
        "xyz": xyz[order],
        "rgb": rgb[order],
        "truth": truth,
        "description": f"{len(kits)} players, {len(xyz):,} points",
    }


def save_field(data: dict, point_path: Path, truth_path: Path) -> None:
    """Write the point file and the truth file of a generated field."""
    write_point_file(point_path, data["xyz"], data["rgb"])

    truth_path = Path(truth_path)
    truth_path.parent.mkdir(parents=True, exist_ok=True)
    with open(truth_path, "w") as f:
        for x, z, name in data["truth"]:
            f.write(f"{x:.4f} {z:.4f} {name}\n")


def main():
    parser = argparse.ArgumentParser(
        description='Generate a synthetic playing field for PC-Teams testing'
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=Path('share'),
        help='Output directory'
    )
    parser.add_argument(
        '--players', '-p',
        type=int,
        default=5,
        help='Number of players per team'
    )
    parser.add_argument(
        '--referees', '-r',
        type=int,
        default=2,
        help='Number of referees'
    )
    parser.add_argument(
        '--points', '-n',
        type=int,
        default=250,
        help='Number of points per player'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed'
    )

    args = parser.parse_args()

    args.output.mkdir(parents=True, exist_ok=True)

    data = generate_field(
        n_players_per_team=args.players,
        n_referees=args.referees,
        points_per_player=args.points,
        seed=args.seed,
    )
    point_path = args.output / "point_cloud_data.txt"
    truth_path = args.output / "point_cloud_true_positions.txt"
    save_field(data, point_path, truth_path)

    print(f"  {data['description']}")
    print(f"  Points: {point_path}")
    print(f"  Truth:  {truth_path}")
    print("\nDone!")


if __name__ == '__main__':
    main()
