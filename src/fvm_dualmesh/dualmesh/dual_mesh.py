# -*- coding: utf-8 -*-
"""
This module builds the median-dual control-volume mesh of a 2D primal mesh.

Every primal vertex becomes one dual control volume, bounded by the segments
that join the midpoints of its incident edges to the centroids of its
incident elements. Every primal edge becomes one dual face joining the
control volumes of its two end points.

The `DualMeshBuilder` accumulates, element by element, the signed areas of
the sub-triangles (corner, edge midpoint, centroid) into the control volumes
and the normals of the midpoint-to-centroid segments into the faces. The
resulting `DualMesh` is the data structure a finite volume solver integrates
over.
"""

import warnings
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from scipy.sparse import csr_matrix

from .boundary import Boundary, BoundaryDefinition, build_boundaries
from .primary_mesh import PrimaryMesh
from .quality import DualMeshQuality
from .reporting import format_quality_summary


def _cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """z-component of the 2D cross product over the last axis."""
    return a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0]


def _median_dual_geometry(
    coords: np.ndarray, elements: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Computes the corner coordinates, centroids and edge midpoints of elements.

    Local edge i of an element joins its local vertices i and i+1.

    Returns:
        corners (n_elems, k, 2), centroids (n_elems, 2), midpoints (n_elems, k, 2)
    """
    corners = coords[elements]
    centroids = corners.sum(axis=1) / elements.shape[1]
    midpoints = 0.5 * (corners + np.roll(corners, -1, axis=1))
    return corners, centroids, midpoints


class DualMesh:
    """
    A median-dual control-volume mesh.

    Attributes:
        n_elements (int): Number of control volumes (= primal vertices).
        vertex_coords (np.ndarray): Primal vertex of each control volume.
            - Shape: `(n_elements, 2)`
        volumes (np.ndarray): Area of each control volume.
            - Shape: `(n_elements,)`
        n_faces (int): Number of dual faces (= primal edges).
        n_interior_faces (int): Number of faces built from interior edges.
            These come first in the face arrays, boundary faces follow.
        face_neighbors (np.ndarray): The two control volumes joined by each face.
            - Shape: `(n_faces, 2)`
        face_normals (np.ndarray): Accumulated normal of each face, scaled by
            the face length.
            - Shape: `(n_faces, 2)`
        boundaries (List[Boundary]): Boundary segments in definition order.
        primary_mesh (PrimaryMesh): The mesh this dual mesh was built from.
        quality (DualMeshQuality): Quality metrics, computed on demand.
    """

    def __init__(
        self,
        primary_mesh: PrimaryMesh,
        volumes: np.ndarray,
        face_neighbors: np.ndarray,
        face_normals: np.ndarray,
        boundaries: List[Boundary],
    ) -> None:
        self.primary_mesh = primary_mesh
        self.n_elements: int = primary_mesh.n_vertices
        self.vertex_coords: np.ndarray = primary_mesh.vertex_coords
        self.volumes: np.ndarray = volumes

        self.n_faces: int = face_neighbors.shape[0]
        self.n_interior_faces: int = primary_mesh.n_interior_edges
        self.face_neighbors: np.ndarray = face_neighbors
        self.face_normals: np.ndarray = face_normals

        self.boundaries: List[Boundary] = boundaries
        self.quality: Optional[DualMeshQuality] = None

        self._face_index = {
            tuple(sorted(pair)): i for i, pair in enumerate(face_neighbors.tolist())
        }

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def from_primary_mesh(
        cls, primary_mesh: PrimaryMesh, boundary_definition: BoundaryDefinition
    ) -> "DualMesh":
        """Builds the dual mesh of `primary_mesh`. See `DualMeshBuilder.build`."""
        return DualMeshBuilder().build(primary_mesh, boundary_definition)

    @property
    def n_boundary_faces(self) -> int:
        return self.n_faces - self.n_interior_faces

    @property
    def faces(self) -> List[Tuple[Tuple[int, int], Tuple[float, float]]]:
        """Each face as a (vertex pair, normal) tuple."""
        return [
            (tuple(pair), tuple(normal))
            for pair, normal in zip(
                self.face_neighbors.tolist(), self.face_normals.tolist()
            )
        ]

    def find_face(self, p0: int, p1: int) -> int:
        """Returns the index of the face joining control volumes p0 and p1."""
        key = (p0, p1) if p0 < p1 else (p1, p0)
        try:
            return self._face_index[key]
        except KeyError as e:
            raise KeyError(f"No dual face connects vertices {p0} and {p1}.") from e

    def boundary(self, marker: int) -> Boundary:
        """Returns the boundary segment built for `marker`."""
        for bdry in self.boundaries:
            if bdry.marker == marker:
                return bdry
        raise KeyError(f"No boundary with marker {marker}.")

    def total_volume(self) -> float:
        return float(np.sum(self.volumes))

    def check_volumes(self) -> np.ndarray:
        """Returns the ids of all control volumes that are not strictly positive."""
        return np.nonzero(self.volumes <= 0.0)[0]

    def connectivity_matrix(self) -> csr_matrix:
        """
        Builds the control-volume adjacency matrix of the dual mesh.

        The matrix is square and symmetric, with a non-zero entry at (i, j)
        for every face joining control volumes i and j.
        """
        if self.n_faces == 0:
            return csr_matrix((self.n_elements, self.n_elements), dtype=int)

        row = np.concatenate([self.face_neighbors[:, 0], self.face_neighbors[:, 1]])
        col = np.concatenate([self.face_neighbors[:, 1], self.face_neighbors[:, 0]])
        return csr_matrix(
            (np.ones_like(row), (row, col)), shape=(self.n_elements, self.n_elements)
        )

    def dual_segments(self) -> np.ndarray:
        """Edge-midpoint to centroid segments of every element, shape (n, 2, 2)."""
        segments = []
        coords = self.primary_mesh.vertex_coords
        for elements in (self.primary_mesh.triangles, self.primary_mesh.quads):
            if len(elements) == 0:
                continue
            _, centroids, midpoints = _median_dual_geometry(coords, elements)
            ends = np.broadcast_to(centroids[:, None, :], midpoints.shape)
            segments.append(np.stack([midpoints, ends], axis=2).reshape(-1, 2, 2))
        if not segments:
            return np.zeros((0, 2, 2))
        return np.concatenate(segments)

    def print_summary(self) -> None:
        """Prints a formatted summary report of the dual mesh."""
        print("\n" + "=" * 80)
        print(f"{'Dual Mesh Report':^80}")
        print("=" * 80)
        self._print_general_info()
        self._print_boundaries()
        self._print_volume_statistics()

        if self.quality is None:
            self.quality = DualMeshQuality.from_mesh(self)

        print(format_quality_summary(self.quality))
        print("\n" + "=" * 80)

    def plot(
        self,
        filepath: str = "dual_mesh_plot.png",
        show_cells: bool = False,
        show_nodes: bool = False,
    ) -> None:
        """
        Plots the primal mesh with the faces of its median dual and saves it.

        Args:
            filepath (str): The path to save the plot image.
            show_cells (bool): Whether to label the primal elements.
            show_nodes (bool): Whether to label the vertices (control volumes).
        """
        from ..common.utility import plot_mesh

        fig, ax = plt.subplots(figsize=(10, 8))
        plot_mesh(
            ax,
            self.vertex_coords,
            self.primary_mesh.cells,
            show_nodes=show_nodes,
            show_cells=show_cells,
            dual_segments=self.dual_segments(),
            title="Median Dual Mesh",
        )
        plt.savefig(filepath, dpi=300, bbox_inches="tight")
        plt.close(fig)
        print(f"Dual mesh plot saved to: {filepath}")

    # =========================================================================
    # Report helpers
    # =========================================================================

    def _print_general_info(self) -> None:
        print(f"\n{'--- General Information ---':^80}\n")
        print(f"  {'Control Volumes:':<25} {self.n_elements}")
        print(f"  {'Interior Faces:':<25} {self.n_interior_faces}")
        print(f"  {'Boundary Faces:':<25} {self.n_boundary_faces}")
        print(f"  {'Primal Triangles:':<25} {self.primary_mesh.n_triangles}")
        print(f"  {'Primal Quads:':<25} {self.primary_mesh.n_quads}")

    def _print_boundaries(self) -> None:
        if not self.boundaries:
            return
        print(f"\n{'--- Boundaries ---':^80}\n")
        print(f"  {'Marker':<10} {'Type':<12} {'Points':>10} {'Edges':>10}")
        print(f"  {'-'*9} {'-'*12} {'-'*10} {'-'*10}")
        for bdry in self.boundaries:
            print(
                f"  {bdry.marker:<10} {bdry.type.name:<12} "
                f"{bdry.n_points:>10} {bdry.n_edges:>10}"
            )

    def _print_volume_statistics(self) -> None:
        if self.volumes.size == 0:
            return
        print(f"\n{'--- Control Volumes ---':^80}\n")
        print(f"  {'Metric':<20} {'Min':>15} {'Max':>15} {'Average':>15}")
        print(f"  {'-'*19} {'-'*15} {'-'*15} {'-'*15}")
        print(
            f"  {'Volume':<20} {np.min(self.volumes):>15.4e} "
            f"{np.max(self.volumes):>15.4e} {np.mean(self.volumes):>15.4e}"
        )
        print(f"  {'Total Volume:':<20} {self.total_volume():>15.6f}")


class DualMeshBuilder:
    """
    Builds a `DualMesh` from a `PrimaryMesh` and a `BoundaryDefinition`.

    The builder holds no state between calls; the vertex-to-face adjacency
    used during a build is local to that build.
    """

    def build(
        self, primary_mesh: PrimaryMesh, boundary_definition: BoundaryDefinition
    ) -> DualMesh:
        """
        Constructs the median-dual mesh.

        1. The boundary edges are segmented by marker.
        2. Faces are the interior edges followed by the boundary edges, in
           input order.
        3. Every face is registered at both of its end points.
        4. Each triangle and quad adds its sub-triangle areas to the
           control volumes of its corners and its segment normals to the
           faces of its edges. Boundary faces only receive the
           contribution of their single adjacent element.

        Args:
            primary_mesh: The primal mesh; its elements must be wound
                counter-clockwise.
            boundary_definition: Ordered marker -> boundary type pairs.

        Returns:
            The new DualMesh.
        """
        if primary_mesh.n_vertices == 0 or primary_mesh.n_elements == 0:
            raise RuntimeError(
                "Primary mesh has no vertices or elements. Load a mesh before building its dual."
            )

        # Validates the boundary vertex ids before any of them is used as an index.
        boundaries = build_boundaries(primary_mesh, boundary_definition)

        face_neighbors = np.concatenate(
            [primary_mesh.interior_edges, primary_mesh.boundary_edges]
        ).astype(int)
        vertex_faces = self._build_vertex_faces(face_neighbors, primary_mesh.n_vertices)

        volumes = np.zeros(primary_mesh.n_vertices)
        face_normals = np.zeros((face_neighbors.shape[0], 2))

        coords = primary_mesh.vertex_coords
        for elements in (primary_mesh.triangles, primary_mesh.quads):
            self._accumulate_elements(
                coords, elements, face_neighbors, vertex_faces, volumes, face_normals
            )

        n_degenerate = int(np.count_nonzero(volumes <= 0.0))
        if n_degenerate > 0:
            warnings.warn(
                f"{n_degenerate} dual control volume(s) are not positive. "
                "Check the orientation and validity of the primary mesh.",
                UserWarning,
            )

        return DualMesh(primary_mesh, volumes, face_neighbors, face_normals, boundaries)

    @staticmethod
    def _build_vertex_faces(face_neighbors: np.ndarray, n_vertices: int) -> List[List[int]]:
        """Lists, for every vertex, the faces it is an end point of."""
        vertex_faces: List[List[int]] = [[] for _ in range(n_vertices)]
        for i_face, (p0, p1) in enumerate(face_neighbors.tolist()):
            vertex_faces[p0].append(i_face)
            vertex_faces[p1].append(i_face)
        return vertex_faces

    @staticmethod
    def _find_face(
        p0: int, p1: int, face_pairs: List[List[int]], vertex_faces: List[List[int]]
    ) -> int:
        """Scans the faces of p0 for the one whose other end point is p1."""
        for i_face in vertex_faces[p0]:
            if p1 in face_pairs[i_face]:
                return i_face
        raise KeyError(
            f"No dual face connects vertices {p0} and {p1}. "
            "The primary mesh edge lists do not match its elements."
        )

    def _accumulate_elements(
        self,
        coords: np.ndarray,
        elements: np.ndarray,
        face_neighbors: np.ndarray,
        vertex_faces: List[List[int]],
        volumes: np.ndarray,
        face_normals: np.ndarray,
    ) -> None:
        """
        Adds the median-dual contributions of one kind of element.

        For local edge i from corner p0 to corner p1 with midpoint M and
        element centroid C, the sub-triangle (p0, M, C) is added to the volume
        of p0 and the sub-triangle (p1, M, C), which is wound clockwise, is
        subtracted from the volume of p1. The normal (C.y - M.y, M.x - C.x) of
        the segment M -> C is added to the face (p0, p1) only when p0 < p1.
        """
        if len(elements) == 0:
            return

        corners, centroids, midpoints = _median_dual_geometry(coords, elements)
        ends = np.roll(corners, -1, axis=1)
        c = centroids[:, None, :]

        area_start = 0.5 * _cross(midpoints - corners, c - corners)
        area_end = 0.5 * _cross(midpoints - ends, c - ends)

        start_ids = elements
        end_ids = np.roll(elements, -1, axis=1)

        # All additions, then all subtractions, each in element-major order;
        # the fixed order makes repeated builds bit-identical.
        np.add.at(volumes, start_ids.ravel(), area_start.ravel())
        np.subtract.at(volumes, end_ids.ravel(), area_end.ravel())

        normals = np.stack(
            [c[..., 1] - midpoints[..., 1], midpoints[..., 0] - c[..., 0]], axis=-1
        )

        face_pairs = face_neighbors.tolist()
        for i_elem, i_edge in zip(*np.nonzero(start_ids < end_ids)):
            p0 = int(start_ids[i_elem, i_edge])
            p1 = int(end_ids[i_elem, i_edge])
            i_face = self._find_face(p0, p1, face_pairs, vertex_faces)
            face_normals[i_face] += normals[i_elem, i_edge]
