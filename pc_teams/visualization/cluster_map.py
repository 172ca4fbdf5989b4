"""
Top-down rendering of classified player clusters.

Uses matplotlib to draw every cluster of a data set in the (x, z) plane,
colored by class, with the core center of mass marked.
"""

import numpy as np
from matplotlib import pyplot as plt
from matplotlib.patches import Patch
from typing import List, Optional, Tuple

from pc_teams.config import CLASS_COLORS
from pc_teams.core.cluster import UNCLASSIFIED
from pc_teams.core.dataset import DataSet


def hex_to_rgb(hex_color: str) -> Tuple[float, float, float]:
    """Convert hex color string to RGB tuple (0-1 range)."""
    hex_color = hex_color.lstrip("#")
    return tuple(int(hex_color[i : i + 2], 16) / 255.0 for i in (0, 2, 4))


def get_class_color(class_id: int) -> Tuple[float, float, float]:
    """
    RGB color (0-1 range) of a class id.

    Class ids without a predefined color (supervised runs with more than
    three classes) are taken from the ``tab10`` colormap.
    """
    if class_id in CLASS_COLORS:
        return hex_to_rgb(CLASS_COLORS[class_id])
    return tuple(plt.get_cmap("tab10")(class_id % 10)[:3])


def render_cluster_map(
    ds: DataSet,
    class_names: List[str],
    title: str = "",
    figsize: Tuple[int, int] = (10, 8),
    point_size: float = 2.0,
    dpi: int = 150,
    show_outliers: bool = True,
    output_path: Optional[str] = None,
) -> plt.Figure:
    """
    Render the clusters of a data set from above.

    Parameters
    ----------
    ds : DataSet
        Clustered and classified data set.
    class_names : list of str
        Class name per class id, used in the legend.
    title : str
        Figure title.
    figsize : tuple
        Figure size in inches.
    point_size : float
        Size of the cluster points.
    dpi : int
        Output resolution.
    show_outliers : bool
        Draw points left out of the cluster cores in gray.
    output_path : str, optional
        If provided, save figure to this path.

    Returns
    -------
    plt.Figure
        The matplotlib figure object.
    """
    fig, ax = plt.subplots(figsize=figsize, dpi=dpi)

    counts = {}
    for cl in ds.clusters:
        color = get_class_color(cl.class_id)
        core = cl.core if cl.has_core else cl

        if show_outliers and core is not cl:
            core_ids = {id(p) for p in core}
            outliers = np.array(
                [(p.x, p.z) for p in cl if id(p) not in core_ids]
            ).reshape(-1, 2)
            if len(outliers):
                ax.scatter(
                    outliers[:, 0],
                    outliers[:, 1],
                    c=[hex_to_rgb(CLASS_COLORS[UNCLASSIFIED])],
                    s=point_size,
                    marker=".",
                    alpha=0.5,
                )

        xyz = core.xyz
        if len(xyz):
            ax.scatter(xyz[:, 0], xyz[:, 2], c=[color], s=point_size, marker=".", alpha=0.8)
        ax.scatter(
            [core.com.x],
            [core.com.z],
            c=[color],
            s=60,
            marker="o",
            edgecolors="black",
            linewidths=0.8,
        )
        counts[cl.class_id] = counts.get(cl.class_id, 0) + 1

    ax.set_xlabel("X")
    ax.set_ylabel("Z")
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_title(title or f"{ds.name}: {len(ds.clusters)} clusters")

    legend_elements = [
        Patch(
            facecolor=get_class_color(c),
            edgecolor="black",
            label=(
                f"{class_names[c] if 0 <= c < len(class_names) else 'Unclassified'}"
                f" ({counts[c]})"
            ),
        )
        for c in sorted(counts)
    ]
    if legend_elements:
        ax.legend(
            handles=legend_elements,
            loc="upper left",
            bbox_to_anchor=(1.02, 1),
            fontsize=8,
        )

    plt.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=dpi, bbox_inches="tight")

    return fig
