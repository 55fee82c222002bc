import numpy as np
from matplotlib.collections import LineCollection, PatchCollection
from matplotlib.patches import Polygon, Rectangle

# Face color and legend label per element kind, keyed by vertex count.
ELEMENT_STYLES = {
    3: ("#87CEEB", "Triangle"),
    4: ("#90EE90", "Quad"),
}
FALLBACK_STYLE = ("#D3D3D3", "Other")

DUAL_FACE_COLOR = "#B22222"


def signed_polygon_area(points):
    """Signed shoelace area; positive for counter-clockwise vertex order."""
    x, y = points[:, 0], points[:, 1]
    return 0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def polygon_area(points):
    return abs(signed_polygon_area(points))


def get_geometry_extent(nodes):
    """Length of the bounding box diagonal of `nodes`, 1.0 for a degenerate box."""
    diagonal = np.linalg.norm(np.ptp(nodes, axis=0))
    return diagonal if diagonal > 0 else 1.0


def _label(ax, x, y, text, fontsize, color, background, pad):
    ax.text(
        x,
        y,
        text,
        color=color,
        ha="center",
        va="center",
        fontsize=fontsize,
        bbox=dict(
            facecolor=background,
            alpha=0.6,
            edgecolor="none",
            boxstyle=f"round,pad={pad}",
        ),
    )


def _draw_cells(ax, nodes, cells, show_cells):
    """Adds the primal cells as patches and returns the count per element kind."""
    extent = get_geometry_extent(nodes)
    patches = []
    counts = {}
    for cell_id, conn in enumerate(cells):
        corners = nodes[conn]
        color, kind = ELEMENT_STYLES.get(len(conn), FALLBACK_STYLE)
        counts[kind] = counts.get(kind, 0) + 1
        patches.append(
            Polygon(corners, facecolor=color, edgecolor="k", alpha=0.7, lw=0.5)
        )

        if show_cells:
            # Label size follows the cell size relative to the whole domain.
            size = np.sqrt(polygon_area(corners)) / extent
            fontsize = min(max(2, int(size * 120)), 10)
            cx, cy = corners.mean(axis=0)
            _label(ax, cx, cy, str(cell_id), fontsize, "black", "white", 0.2)

    ax.add_collection(PatchCollection(patches, match_original=True))
    return counts


def plot_mesh(
    ax,
    nodes,
    cells,
    show_nodes=False,
    show_cells=False,
    dual_segments=None,
    title="Mesh",
):
    """
    Draws a 2D primal mesh and, optionally, the faces of its median dual.

    Args:
        ax: Matplotlib axes to draw into.
        nodes (np.ndarray): Vertex coordinates, shape (n_vertices, 2) or (n_vertices, 3).
        cells (list): Vertex ids of each primal element.
        show_nodes (bool): Label every vertex, i.e. every control volume.
        show_cells (bool): Label every primal element.
        dual_segments (np.ndarray, optional): Edge-midpoint to centroid
            segments of the dual faces, shape (n_segments, 2, 2).
        title (str, optional): The title for the plot.
    """
    nodes = np.asarray(nodes)[:, :2]
    counts = _draw_cells(ax, nodes, cells, show_cells)

    has_dual = dual_segments is not None and len(dual_segments) > 0
    if has_dual:
        ax.add_collection(
            LineCollection(dual_segments, colors=DUAL_FACE_COLOR, linewidths=0.8)
        )

    if show_nodes:
        fontsize = min(max(2, int(100 / np.sqrt(max(len(nodes), 1)))), 10)
        for vertex_id, (x, y) in enumerate(nodes):
            _label(ax, x, y, str(vertex_id), fontsize, "darkred", "yellow", 0.1)

    ax.set_title(title, fontsize=18, pad=20)
    ax.set_xlabel("X", fontsize=14, labelpad=8)
    ax.set_ylabel("Y", fontsize=14, labelpad=8)
    ax.grid(True, linestyle="--", alpha=0.5)
    ax.set_aspect("equal", adjustable="box")
    ax.tick_params(axis="both", which="major", pad=2, labelsize=12)
    ax.autoscale_view()
    for spine in ax.spines.values():
        spine.set_visible(False)

    styles = list(ELEMENT_STYLES.values()) + [FALLBACK_STYLE]
    handles = [
        Rectangle((0, 0), 1, 1, color=color, label=f"{kind} (#{counts[kind]})")
        for color, kind in styles
        if counts.get(kind, 0) > 0
    ]
    if has_dual:
        handles.append(Rectangle((0, 0), 1, 1, color=DUAL_FACE_COLOR, label="Dual faces"))

    ax.legend(
        handles=handles,
        loc="upper left",
        bbox_to_anchor=(1.0, 1.0),
        fontsize=14,
        frameon=False,
    )
