import os
from typing import Any, Dict, List

import gmsh

MESH_TYPES = ("tri", "quads", "structured")


class MeshGenerator:
    """
    Meshes gmsh surfaces into triangle/quad primal meshes with boundary markers.

    Boundary markers are 1D physical groups. Every group defined through
    `add_boundary_group` keeps its tag, and `PrimaryMesh.from_gmsh` turns
    that tag into the marker of each edge in the group.

    Attributes:
        surface_tags (List[int]): Surfaces to mesh.
        output_dir (str): Directory the .msh file is written to.
    """

    def __init__(self, surface_tags, output_dir: str = "."):
        if isinstance(surface_tags, int):
            surface_tags = [surface_tags]
        self.surface_tags: List[int] = list(surface_tags)
        self.output_dir = output_dir
        self.boundary_groups: Dict[str, int] = {}
        os.makedirs(self.output_dir, exist_ok=True)

    def add_boundary_group(self, name: str, curve_tags: List[int], tag: int = -1) -> int:
        """
        Tags `curve_tags` as the boundary `name`.

        Args:
            name (str): Boundary name, e.g. "inlet".
            curve_tags (List[int]): Curves forming the boundary.
            tag (int, optional): Marker to assign; -1 lets gmsh choose.

        Returns:
            int: The marker of the boundary.
        """
        marker = gmsh.model.addPhysicalGroup(1, list(curve_tags), tag, name=name)
        self.boundary_groups[name] = marker
        return marker

    def generate(
        self,
        mesh_params: Dict[int, Dict[str, Any]],
        filename: str = "mesh.msh",
    ) -> str:
        """
        Meshes all surfaces in 2D and writes the result.

        Args:
            mesh_params: Per-surface settings keyed by surface tag, each with
                a "mesh_type" ("tri", "quads" or "structured") and, for
                structured meshes, a "char_length".
            filename (str, optional): Name of the .msh file in `output_dir`.

        Returns:
            str: Path of the written .msh file.
        """
        for surface_tag in self.surface_tags:
            params = mesh_params.get(surface_tag)
            if params is not None:
                self._configure_surface(surface_tag, params)

        self._add_physical_groups()
        gmsh.model.mesh.generate(2)

        msh_file = os.path.join(self.output_dir, filename)
        gmsh.write(msh_file)
        print(f"Successfully created mesh and saved to: {msh_file}")
        return msh_file

    def _configure_surface(self, surface_tag: int, params: Dict[str, Any]):
        mesh_type = params.get("mesh_type", "tri")
        if mesh_type not in MESH_TYPES:
            raise ValueError(
                f"Unknown mesh_type '{mesh_type}'. Expected one of: {', '.join(MESH_TYPES)}."
            )

        if mesh_type == "structured":
            self._make_transfinite(surface_tag, params.get("char_length", 0.1))
        if mesh_type in ("quads", "structured"):
            gmsh.model.mesh.setRecombine(2, surface_tag)

    @staticmethod
    def _make_transfinite(surface_tag: int, char_length: float):
        """Spreads nodes uniformly on the four sides of a surface."""
        sides = gmsh.model.getBoundary([(2, surface_tag)], oriented=False)
        if len(sides) != 4:
            raise ValueError(
                "Structured mesh is only supported for geometries with 4 boundary curves."
            )

        for _, curve in sides:
            curve = abs(curve)
            ends = gmsh.model.getBoundary([(1, curve)], oriented=False)
            (x0, y0, _), (x1, y1, _) = (
                gmsh.model.getValue(0, abs(point), []) for _, point in ends
            )
            side_length = ((x1 - x0) ** 2 + (y1 - y0) ** 2) ** 0.5
            n_cells = max(1, int(round(side_length / char_length)))
            gmsh.model.mesh.setTransfiniteCurve(curve, n_cells + 1)

        gmsh.model.mesh.setTransfiniteSurface(surface_tag)

    def _add_physical_groups(self):
        """Adds the fluid surface group and, if none was defined, one boundary group."""
        if not self.boundary_groups:
            curves = set()
            for surface_tag in self.surface_tags:
                sides = gmsh.model.getBoundary([(2, surface_tag)], oriented=False)
                curves.update(abs(curve) for _, curve in sides)
            if curves:
                self.add_boundary_group("boundary", sorted(curves))

        if self.surface_tags:
            gmsh.model.addPhysicalGroup(2, self.surface_tags, name="fluid")
