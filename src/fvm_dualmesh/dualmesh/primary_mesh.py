# -*- coding: utf-8 -*-
"""
Primal mesh data model for 2D unstructured triangle/quad meshes.

This module defines the `PrimaryMesh` class, the read-only input of the
median-dual construction. It stores vertex coordinates, triangle and quad
connectivity, and the interior/boundary edge lists together with their
neighboring elements and boundary markers.

Key Features:
- Direct construction from already-structured arrays.
- Derivation of edge topology from raw cell connectivity (`from_cells`).
- Structured rectangular meshes with optional triangulated cells.
- Reading mesh data from Gmsh .msh files.

Element ids are global over both element kinds: triangles are numbered
first (0..n_triangles-1), quads follow.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import gmsh
import numpy as np

from ..common.utility import signed_polygon_area

# Gmsh physical groups on curves carry the boundary markers.
GMSH_LINE_DIMENSION = 1


def _as_index_array(values, width: int) -> np.ndarray:
    """Returns `values` as an int array of shape (n, width), (0, width) if empty."""
    if values is None:
        return np.zeros((0, width), dtype=int)
    arr = np.asarray(values, dtype=int)
    if arr.size == 0:
        return np.zeros((0, width), dtype=int)
    return arr.reshape(-1, width)


def _as_flat_index_array(values) -> np.ndarray:
    if values is None:
        return np.zeros(0, dtype=int)
    return np.asarray(values, dtype=int).reshape(-1)


def _shoelace(corners: np.ndarray) -> np.ndarray:
    """Signed areas of a batch of polygons with shape (n, n_corners, 2)."""
    if corners.size == 0:
        return np.zeros(corners.shape[0])
    x, y = corners[..., 0], corners[..., 1]
    x_next, y_next = np.roll(x, -1, axis=1), np.roll(y, -1, axis=1)
    return 0.5 * np.sum(x * y_next - x_next * y, axis=1)


class PrimaryMesh:
    """
    The primal triangle/quad mesh from which a median-dual mesh is built.

    Attributes:
        vertex_coords (np.ndarray): Vertex coordinates, index = vertex id.
            - Shape: `(n_vertices, 2)`
            - `dtype`: `float`
        triangles (np.ndarray): Vertex ids of each triangle, counter-clockwise.
            - Shape: `(n_triangles, 3)`
        quads (np.ndarray): Vertex ids of each quad, counter-clockwise.
            - Shape: `(n_quads, 4)`
        interior_edges (np.ndarray): Vertex id pairs of edges shared by two
            elements.
            - Shape: `(n_interior_edges, 2)`
        interior_edge_neighbors (np.ndarray): The two element ids adjacent to
            each interior edge.
            - Shape: `(n_interior_edges, 2)`
        boundary_edges (np.ndarray): Vertex id pairs of edges owned by exactly
            one element.
            - Shape: `(n_boundary_edges, 2)`
        boundary_edge_neighbors (np.ndarray): The element id adjacent to each
            boundary edge.
            - Shape: `(n_boundary_edges,)`
        boundary_edge_markers (np.ndarray): Boundary marker of each boundary edge.
            - Shape: `(n_boundary_edges,)`
        triangle_neighbors (np.ndarray): Element id across each triangle side
            (side i joins local vertices i and i+1); -1 marks a boundary side.
        quad_neighbors (np.ndarray): Same as `triangle_neighbors` for quads.
        boundary_names (Dict[str, int]): Optional mapping from boundary names
            (e.g. Gmsh physical names) to markers.
    """

    def __init__(
        self,
        vertex_coords,
        triangles=None,
        quads=None,
        interior_edges=None,
        interior_edge_neighbors=None,
        boundary_edges=None,
        boundary_edge_neighbors=None,
        boundary_edge_markers=None,
        triangle_neighbors=None,
        quad_neighbors=None,
    ) -> None:
        coords = np.asarray(vertex_coords, dtype=float)
        if coords.size == 0:
            coords = np.zeros((0, 2))
        else:
            coords = coords.reshape(coords.shape[0], -1)[:, :2]
        self.vertex_coords: np.ndarray = coords

        self.triangles: np.ndarray = _as_index_array(triangles, 3)
        self.quads: np.ndarray = _as_index_array(quads, 4)

        self.interior_edges: np.ndarray = _as_index_array(interior_edges, 2)
        self.interior_edge_neighbors: np.ndarray = _as_index_array(
            interior_edge_neighbors, 2
        )
        self.boundary_edges: np.ndarray = _as_index_array(boundary_edges, 2)
        self.boundary_edge_neighbors: np.ndarray = _as_flat_index_array(
            boundary_edge_neighbors
        )
        self.boundary_edge_markers: np.ndarray = _as_flat_index_array(
            boundary_edge_markers
        )

        self.triangle_neighbors: np.ndarray = _as_index_array(triangle_neighbors, 3)
        self.quad_neighbors: np.ndarray = _as_index_array(quad_neighbors, 4)

        self.boundary_names: Dict[str, int] = {}

    # =========================================================================
    # Counts and derived geometry
    # =========================================================================

    @property
    def n_vertices(self) -> int:
        return self.vertex_coords.shape[0]

    @property
    def n_triangles(self) -> int:
        return self.triangles.shape[0]

    @property
    def n_quads(self) -> int:
        return self.quads.shape[0]

    @property
    def n_elements(self) -> int:
        return self.n_triangles + self.n_quads

    @property
    def n_interior_edges(self) -> int:
        return self.interior_edges.shape[0]

    @property
    def n_boundary_edges(self) -> int:
        return self.boundary_edges.shape[0]

    @property
    def cells(self) -> List[List[int]]:
        """Element connectivity as a jagged list, ordered by element id."""
        return self.triangles.tolist() + self.quads.tolist()

    def element_areas(self) -> np.ndarray:
        """Signed shoelace area of every element, ordered by element id."""
        return np.concatenate(
            [
                _shoelace(self.vertex_coords[self.triangles]),
                _shoelace(self.vertex_coords[self.quads]),
            ]
        )

    def total_area(self) -> float:
        """Total area covered by all triangles and quads."""
        return float(np.sum(np.abs(self.element_areas())))

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def from_cells(
        cls,
        vertex_coords,
        cells: Iterable[Iterable[int]],
        boundary_markers: Optional[Dict[frozenset, int]] = None,
    ) -> "PrimaryMesh":
        """
        Builds a PrimaryMesh from raw cell connectivity.

        Cells are re-wound counter-clockwise, then interior and boundary edges
        are derived by matching element sides on their sorted vertex pair.
        Interior edges are listed in the order they are first met while
        walking the cells in input order; boundary edges keep the direction in
        which their single element traverses them.

        Args:
            vertex_coords: Vertex coordinates, shape (n_vertices, 2) or (n_vertices, 3).
            cells: Vertex ids of each cell; every cell must have 3 or 4 vertices.
            boundary_markers (Dict[frozenset, int], optional): Marker of each
                boundary edge keyed by the frozenset of its two vertex ids.
                Boundary edges that are not listed get marker 0.

        Returns:
            A new PrimaryMesh instance.
        """
        coords = np.asarray(vertex_coords, dtype=float)
        coords = coords.reshape(coords.shape[0], -1)[:, :2]
        boundary_markers = boundary_markers or {}

        oriented_cells = []
        for conn in cells:
            conn = [int(v) for v in conn]
            if len(conn) not in (3, 4):
                raise ValueError(
                    f"Only triangles and quads are supported, got a cell with "
                    f"{len(conn)} vertices: {conn}"
                )
            if signed_polygon_area(coords[conn]) < 0.0:
                conn = conn[::-1]
            oriented_cells.append(conn)

        n_triangles = sum(1 for conn in oriented_cells if len(conn) == 3)
        triangles, quads, element_ids = [], [], []
        for conn in oriented_cells:
            if len(conn) == 3:
                element_ids.append(len(triangles))
                triangles.append(conn)
            else:
                element_ids.append(n_triangles + len(quads))
                quads.append(conn)

        # --- Map each unique edge (sorted node tuple) to its element sides ---
        edge_to_sides: Dict[Tuple[int, int], List[Tuple[int, int, Tuple[int, int]]]] = {}
        for conn, elem_id in zip(oriented_cells, element_ids):
            n = len(conn)
            for side in range(n):
                edge = (conn[side], conn[(side + 1) % n])
                key = tuple(sorted(edge))
                edge_to_sides.setdefault(key, []).append((elem_id, side, edge))

        triangle_neighbors = -np.ones((len(triangles), 3), dtype=int)
        quad_neighbors = -np.ones((len(quads), 4), dtype=int)

        def _set_neighbor(elem_id: int, side: int, neighbor: int) -> None:
            if elem_id < n_triangles:
                triangle_neighbors[elem_id, side] = neighbor
            else:
                quad_neighbors[elem_id - n_triangles, side] = neighbor

        interior_edges, interior_neighbors = [], []
        boundary_edges, boundary_neighbors, markers = [], [], []
        for key, sides in edge_to_sides.items():
            if len(sides) > 2:
                raise ValueError(
                    f"Non-manifold edge {key} shared by {len(sides)} cells."
                )
            if len(sides) == 2:
                (e0, s0, edge), (e1, s1, _) = sides
                interior_edges.append(edge)
                interior_neighbors.append((e0, e1))
                _set_neighbor(e0, s0, e1)
                _set_neighbor(e1, s1, e0)
            else:
                elem_id, _, edge = sides[0]
                boundary_edges.append(edge)
                boundary_neighbors.append(elem_id)
                markers.append(int(boundary_markers.get(frozenset(key), 0)))

        return cls(
            coords,
            triangles=triangles,
            quads=quads,
            interior_edges=interior_edges,
            interior_edge_neighbors=interior_neighbors,
            boundary_edges=boundary_edges,
            boundary_edge_neighbors=boundary_neighbors,
            boundary_edge_markers=markers,
            triangle_neighbors=triangle_neighbors,
            quad_neighbors=quad_neighbors,
        )

    @classmethod
    def create_structured_mesh(
        cls,
        nx: int,
        ny: int,
        length: float = 1.0,
        height: float = 1.0,
        triangulated_cells: Iterable[int] = (),
    ) -> "PrimaryMesh":
        """
        Creates a structured rectangular mesh of nx x ny cells with tagged boundaries.

        Cell `j * nx + i` is the quad in column i and row j. Cells listed in
        `triangulated_cells` are split along their lower-left to upper-right
        diagonal into two triangles. Vertices are numbered row by row starting
        at the lower-left corner. The boundaries are tagged as:
        - 1: bottom
        - 2: right
        - 3: top
        - 4: left

        Args:
            nx (int): Number of cells in the x-direction.
            ny (int): Number of cells in the y-direction.
            length (float): Extent of the domain in the x-direction.
            height (float): Extent of the domain in the y-direction.
            triangulated_cells (Iterable[int]): Cells to split into triangles.

        Returns:
            A new PrimaryMesh instance.
        """
        num_nodes_x = nx + 1
        num_nodes_y = ny + 1
        dx, dy = length / nx, height / ny

        node_coords = []
        for j in range(num_nodes_y):
            for i in range(num_nodes_x):
                node_coords.append([i * dx, j * dy])
        node_coords = np.array(node_coords)

        split = set(triangulated_cells)
        cells = []
        for j in range(ny):
            for i in range(nx):
                n0 = j * num_nodes_x + i
                n1 = j * num_nodes_x + (i + 1)
                n2 = (j + 1) * num_nodes_x + (i + 1)
                n3 = (j + 1) * num_nodes_x + i
                if j * nx + i in split:
                    cells.append([n0, n1, n2])
                    cells.append([n0, n2, n3])
                else:
                    cells.append([n0, n1, n2, n3])

        bottom_tag, right_tag, top_tag, left_tag = 1, 2, 3, 4
        boundary_markers = {}
        for i in range(nx):
            bottom = (i, i + 1)
            top = (ny * num_nodes_x + i, ny * num_nodes_x + i + 1)
            boundary_markers[frozenset(bottom)] = bottom_tag
            boundary_markers[frozenset(top)] = top_tag
        for j in range(ny):
            left = (j * num_nodes_x, (j + 1) * num_nodes_x)
            right = (j * num_nodes_x + nx, (j + 1) * num_nodes_x + nx)
            boundary_markers[frozenset(left)] = left_tag
            boundary_markers[frozenset(right)] = right_tag

        mesh = cls.from_cells(node_coords, cells, boundary_markers)
        mesh.boundary_names = {
            "bottom": bottom_tag,
            "right": right_tag,
            "top": top_tag,
            "left": left_tag,
        }
        return mesh

    @classmethod
    def from_gmsh(cls, msh_file: str, gmsh_verbose: int = 0) -> "PrimaryMesh":
        """
        Creates a PrimaryMesh from a Gmsh .msh file using the Gmsh Python API.

        Triangles and quads of the 2D mesh become the primal elements. Line
        elements belonging to 1D physical groups become boundary edges whose
        marker is the physical group tag.

        Args:
            msh_file (str): The path to the .msh file.
            gmsh_verbose (int): The verbosity level for the Gmsh API (0-10).

        Returns:
            A new PrimaryMesh instance.
        """
        gmsh.initialize()
        gmsh.option.setNumber("General.Verbosity", gmsh_verbose)
        try:
            gmsh.open(msh_file)
            coords, tag_to_index = cls._read_gmsh_nodes()
            cells = cls._read_gmsh_cells(tag_to_index)
            boundary_markers, boundary_names = cls._read_gmsh_boundaries(
                tag_to_index
            )
        finally:
            gmsh.finalize()

        if not cells:
            raise RuntimeError(f"No triangles or quads found in {msh_file}.")

        mesh = cls.from_cells(coords, cells, boundary_markers)
        mesh.boundary_names = boundary_names
        return mesh

    # =========================================================================
    # Gmsh readers
    # =========================================================================

    @staticmethod
    def _read_gmsh_nodes() -> Tuple[np.ndarray, Dict[int, int]]:
        """Reads node coordinates and creates the node tag-to-index map."""
        raw_tags, raw_coords, _ = gmsh.model.mesh.getNodes()
        coords = np.array(raw_coords).reshape(-1, 3)[:, :2]
        tag_to_index = {int(t): i for i, t in enumerate(raw_tags)}
        return coords, tag_to_index

    @staticmethod
    def _read_gmsh_cells(tag_to_index: Dict[int, int]) -> List[List[int]]:
        """Reads the first-order triangles and quads of the 2D mesh."""
        elem_types, _, connectivity_list = gmsh.model.mesh.getElements(dim=2)

        cells = []
        for i, et in enumerate(elem_types):
            props = gmsh.model.mesh.getElementProperties(et)
            num_nodes = int(props[3])
            if num_nodes not in (3, 4):
                raise ValueError(
                    f"Unsupported 2D element type '{props[0]}' with {num_nodes} nodes."
                )
            raw_conn = np.array(connectivity_list[i]).reshape(-1, num_nodes)
            cells.extend(
                [[tag_to_index[int(t)] for t in conn] for conn in raw_conn]
            )
        return cells

    @staticmethod
    def _read_gmsh_boundaries(
        tag_to_index: Dict[int, int]
    ) -> Tuple[Dict[frozenset, int], Dict[str, int]]:
        """
        Reads the 1D physical groups that define the boundary markers.

        Each boundary edge can only belong to one physical group.
        """
        boundary_markers: Dict[frozenset, int] = {}
        boundary_names: Dict[str, int] = {}

        for dim, tag in gmsh.model.getPhysicalGroups(GMSH_LINE_DIMENSION):
            name = gmsh.model.getPhysicalName(dim, tag) or str(tag)
            boundary_names[name] = tag

            for ent in gmsh.model.getEntitiesForPhysicalGroup(dim, tag):
                elem_types, _, node_tags_per_type = gmsh.model.mesh.getElements(
                    dim, ent
                )
                for i, etype in enumerate(elem_types):
                    n_nodes = int(gmsh.model.mesh.getElementProperties(etype)[3])
                    raw_conn = node_tags_per_type[i]
                    if len(raw_conn) == 0:
                        continue

                    for edge_tags in np.array(raw_conn).reshape(-1, n_nodes):
                        try:
                            edge = frozenset(
                                tag_to_index[int(t)] for t in edge_tags[:2]
                            )
                        except KeyError as e:
                            raise RuntimeError(
                                f"Mesh data inconsistency: Node tag {e} from a boundary edge "
                                "was not found in the global node list."
                            ) from e

                        existing = boundary_markers.get(edge)
                        if existing is not None and existing != tag:
                            raise ValueError(
                                f"Boundary edge with nodes {sorted(edge)} is assigned to "
                                f"multiple physical groups ({existing} and {tag})."
                            )
                        boundary_markers[edge] = tag

        return boundary_markers, boundary_names
