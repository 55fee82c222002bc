# -*- coding: utf-8 -*-
"""
Computes and stores quality metrics for a DualMesh object.

The median-dual construction does not reject degenerate input; a dual mesh
is only valid if every control volume is strictly positive and the volumes
add up to the area of the primal mesh. This module checks those
postconditions together with a few topological ones.

Classes:
    DualMeshQuality: A class for computing and storing dual mesh quality metrics.
"""
from __future__ import annotations
from typing import List, TYPE_CHECKING
from dataclasses import dataclass
import numpy as np

if TYPE_CHECKING:
    from .dual_mesh import DualMesh

GEOMETRY_TOLERANCE = 1e-12


@dataclass(frozen=True)
class DualMeshQuality:
    """
    Stores quality metrics for a DualMesh object.

    Instances of this class are created via the `from_mesh` class method.

    Attributes:
        min_max_volume_ratio (float): Ratio of the smallest to the largest
            control volume.
        volumes (np.ndarray): Copy of the control volumes.
        n_non_positive_volumes (int): Number of control volumes <= 0.
        area_conservation_error (float): Absolute difference between the sum
            of the control volumes and the area of the primal mesh.
        n_zero_normal_interior_faces (int): Interior faces that received no
            normal contribution.
        connectivity_issues (List[str]): Descriptions of any problems found.
    """

    min_max_volume_ratio: float
    volumes: np.ndarray
    n_non_positive_volumes: int
    area_conservation_error: float
    n_zero_normal_interior_faces: int
    connectivity_issues: List[str]

    @classmethod
    def from_mesh(cls, mesh: "DualMesh") -> "DualMeshQuality":
        """
        Computes all quality metrics from a DualMesh and returns a new instance.
        """
        if mesh.n_elements == 0:
            return cls(
                min_max_volume_ratio=0.0,
                volumes=np.array([]),
                n_non_positive_volumes=0,
                area_conservation_error=0.0,
                n_zero_normal_interior_faces=0,
                connectivity_issues=[],
            )

        n_non_positive = int(mesh.check_volumes().size)
        area_error = abs(mesh.total_volume() - mesh.primary_mesh.total_area())
        n_zero_normals = cls._count_zero_normal_interior_faces(mesh)

        issues = []
        if n_non_positive > 0:
            issues.append(f"Found {n_non_positive} non-positive control volumes.")
        if n_zero_normals > 0:
            issues.append(
                f"Found {n_zero_normals} interior faces without a normal contribution "
                "(inconsistent element winding)."
            )
        issues.extend(cls._check_connectivity(mesh))

        return cls(
            min_max_volume_ratio=cls._compute_volume_ratio(mesh),
            volumes=mesh.volumes.copy(),
            n_non_positive_volumes=n_non_positive,
            area_conservation_error=area_error,
            n_zero_normal_interior_faces=n_zero_normals,
            connectivity_issues=issues,
        )

    @property
    def is_valid(self) -> bool:
        return self.n_non_positive_volumes == 0 and not self.connectivity_issues

    @staticmethod
    def _compute_volume_ratio(mesh: "DualMesh") -> float:
        """Calculates the ratio of the smallest to the largest control volume."""
        min_vol = np.min(mesh.volumes)
        max_vol = np.max(mesh.volumes)
        return min_vol / max_vol if max_vol > GEOMETRY_TOLERANCE else 0.0

    @staticmethod
    def _count_zero_normal_interior_faces(mesh: "DualMesh") -> int:
        interior = mesh.face_normals[: mesh.n_interior_faces]
        if interior.size == 0:
            return 0
        norms = np.linalg.norm(interior, axis=1)
        return int(np.count_nonzero(norms < GEOMETRY_TOLERANCE))

    @staticmethod
    def _check_connectivity(mesh: "DualMesh") -> List[str]:
        """Checks for vertices without faces and for duplicate faces."""
        issues = []
        referenced = np.zeros(mesh.n_elements, dtype=bool)
        referenced[mesh.face_neighbors.ravel()] = True
        n_isolated = int(np.count_nonzero(~referenced))
        if n_isolated > 0:
            issues.append(f"Found {n_isolated} vertices without any dual face.")

        unique_faces = {tuple(sorted(pair)) for pair in mesh.face_neighbors.tolist()}
        if len(unique_faces) < mesh.n_faces:
            issues.append("Found duplicate dual faces.")
        return issues
