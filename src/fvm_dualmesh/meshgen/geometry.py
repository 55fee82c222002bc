from typing import Dict, List, Sequence, Tuple

import gmsh
import numpy as np
from scipy.spatial import ConvexHull


class Geometry:
    """
    Builds planar gmsh surfaces whose sides can be tagged as boundaries.

    Each surface created here remembers its boundary curves in loop order,
    so a caller can hand individual sides to
    `MeshGenerator.add_boundary_group`.

    Attributes:
        name (str): The name of the geometry.
        surface_curves (Dict[int, List[int]]): Boundary curve tags of each
            surface, in loop order.
    """

    def __init__(self, name: str = ""):
        self.name = name or "Default Geometry"
        self.surface_curves: Dict[int, List[int]] = {}

    def get_bounding_box(self) -> Tuple[float, float, float, float]:
        """Returns (min_x, min_y, max_x, max_y) of everything in the model."""
        gmsh.model.geo.synchronize()
        min_x, min_y, _, max_x, max_y, _ = gmsh.model.getBoundingBox(-1, -1)
        return min_x, min_y, max_x, max_y

    def polygon(
        self,
        points: Sequence[Tuple[float, float]],
        convex_hull: bool = False,
        mesh_size: float = 0.1,
    ) -> int:
        """
        Creates a plane surface bounded by the closed polygon through `points`.

        Args:
            points: (x, y) corners in boundary order.
            convex_hull (bool, optional): Use the convex hull of the points
                instead; its corners are taken counter-clockwise.
            mesh_size (float, optional): Target element size at the corners.

        Returns:
            int: The tag of the new surface.
        """
        if len(points) < 3:
            raise ValueError("At least 3 points are required to create a polygon.")

        corners = np.asarray(points, dtype=float)
        if convex_hull:
            corners = corners[ConvexHull(corners).vertices]
        return self._add_surface(corners, mesh_size)

    def rectangle(
        self,
        length: float,
        width: float,
        x: float = 0.0,
        y: float = 0.0,
        mesh_size: float = 0.1,
    ) -> int:
        """
        Creates an axis-aligned rectangle with its lower-left corner at (x, y).

        Its curves are stored as bottom, right, top, left.
        """
        corners = np.array(
            [[x, y], [x + length, y], [x + length, y + width], [x, y + width]]
        )
        return self._add_surface(corners, mesh_size)

    def _add_surface(self, corners: np.ndarray, mesh_size: float) -> int:
        point_tags = [
            gmsh.model.geo.addPoint(cx, cy, 0, mesh_size) for cx, cy in corners
        ]
        n = len(point_tags)
        curve_tags = [
            gmsh.model.geo.addLine(point_tags[i], point_tags[(i + 1) % n])
            for i in range(n)
        ]
        loop = gmsh.model.geo.addCurveLoop(curve_tags)
        surface_tag = gmsh.model.geo.addPlaneSurface([loop])
        gmsh.model.geo.synchronize()

        self.surface_curves[surface_tag] = curve_tags
        return surface_tag
