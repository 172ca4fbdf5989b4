"""Visualization module for rendering classified clusters."""

from pc_teams.visualization.cluster_map import (
    get_class_color,
    hex_to_rgb,
    render_cluster_map,
)

__all__ = [
    "get_class_color",
    "hex_to_rgb",
    "render_cluster_map",
]
