"""I/O module for reading and writing point and truth files."""

from pc_teams.io.point_reader import (
    POINT_COLUMNS,
    TRUTH_COLUMNS,
    read_point_file,
    read_true_positions,
    write_point_file,
)

__all__ = [
    "POINT_COLUMNS",
    "TRUTH_COLUMNS",
    "read_point_file",
    "read_true_positions",
    "write_point_file",
]
