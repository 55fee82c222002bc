# -*- coding: utf-8 -*-
"""
This package turns a primal triangle/quad mesh into the median-dual
control-volume mesh a vertex-centered finite volume solver integrates over.

Key modules:
- primary_mesh: Defines the primal mesh (vertices, elements, edges, markers).
- boundary:     Segments the boundary edges into boundaries by marker.
- dual_mesh:    Builds the dual control volumes and face normals.
- quality:      Validity and quality metrics of a dual mesh.
- reporting:    Formatting of the quality metrics.
"""

from .primary_mesh import PrimaryMesh
from .boundary import (
    Boundary,
    BoundaryDefinition,
    BoundaryHandler,
    BoundaryHandlerRegistry,
    BoundaryType,
    build_boundaries,
)
from .dual_mesh import DualMesh, DualMeshBuilder
from .quality import DualMeshQuality

__all__ = [
    "PrimaryMesh",
    "Boundary",
    "BoundaryDefinition",
    "BoundaryHandler",
    "BoundaryHandlerRegistry",
    "BoundaryType",
    "build_boundaries",
    "DualMesh",
    "DualMeshBuilder",
    "DualMeshQuality",
]
