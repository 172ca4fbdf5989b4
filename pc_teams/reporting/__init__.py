"""Reporting module for statistics and report generation."""

from pc_teams.reporting.statistics import (
    calculate_class_stats,
    calculate_cluster_statistics,
    calculate_size_stats,
)
from pc_teams.reporting.report_writer import (
    format_class_positions,
    generate_config_summary,
    write_json_report,
)

__all__ = [
    # statistics
    "calculate_cluster_statistics",
    "calculate_class_stats",
    "calculate_size_stats",
    # report_writer
    "format_class_positions",
    "generate_config_summary",
    "write_json_report",
]
