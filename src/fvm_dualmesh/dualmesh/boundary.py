# -*- coding: utf-8 -*-
"""
Boundary segmentation of a primal mesh.

This module partitions the boundary edges of a `PrimaryMesh` into one
`Boundary` segment per marker of a `BoundaryDefinition`. Each segment lists
its boundary points (ascending vertex id) and its boundary edges (input
order), and owns zero-initialized storage for the boundary normals and mass
fluxes that a flow solver fills in later.

Classes:
    BoundaryType: The kinds of physical boundaries.
    BoundaryDefinition: Ordered marker -> boundary type pairs.
    Boundary: One boundary segment.
    BoundaryHandler: Interface for solver-side boundary condition callbacks.
    BoundaryHandlerRegistry: Maps boundary types to handlers.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, List, Tuple, Union

import numpy as np

if TYPE_CHECKING:
    from .primary_mesh import PrimaryMesh


class BoundaryType(Enum):
    PERIODIC = "periodic"
    SYMMETRY = "symmetry"
    INLET = "inlet"
    OUTLET = "outlet"
    WALL = "wall"

    @classmethod
    def parse(cls, value: Union["BoundaryType", str]) -> "BoundaryType":
        """Accepts a BoundaryType or its case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError as e:
            valid = ", ".join(t.name for t in cls)
            raise ValueError(
                f"Unknown boundary type '{value}'. Expected one of: {valid}."
            ) from e


class BoundaryDefinition:
    """
    An ordered set of (marker, boundary type) pairs.

    The order of the pairs is the order of the boundaries built from it.
    Markers must be unique.
    """

    def __init__(self, pairs=()) -> None:
        self._pairs: List[Tuple[int, BoundaryType]] = []
        for marker, bdry_type in pairs:
            self.add(marker, bdry_type)

    def add(self, marker: int, bdry_type: Union[BoundaryType, str]) -> None:
        marker = int(marker)
        if marker in self.markers:
            raise ValueError(f"Boundary marker {marker} is defined more than once.")
        self._pairs.append((marker, BoundaryType.parse(bdry_type)))

    @classmethod
    def from_dict(cls, mapping: Dict) -> "BoundaryDefinition":
        """Creates a definition from a {marker: type} mapping, keeping its order."""
        return cls((int(marker), bdry_type) for marker, bdry_type in mapping.items())

    @classmethod
    def from_json(cls, path: str) -> "BoundaryDefinition":
        """
        Reads a boundary definition from a JSON parameter file.

        Two layouts are accepted:
            {"1": "inlet", "2": "wall"}
            {"boundaries": [{"marker": 1, "type": "inlet"}, ...]}
        """
        with open(path, "r") as fh:
            data = json.load(fh)

        if isinstance(data, dict) and "boundaries" in data:
            return cls((entry["marker"], entry["type"]) for entry in data["boundaries"])
        if isinstance(data, dict):
            return cls.from_dict(data)
        raise ValueError(f"Unrecognized boundary definition layout in {path}.")

    @property
    def markers(self) -> List[int]:
        return [marker for marker, _ in self._pairs]

    @property
    def types(self) -> List[BoundaryType]:
        return [bdry_type for _, bdry_type in self._pairs]

    def type_for(self, marker: int) -> BoundaryType:
        for m, bdry_type in self._pairs:
            if m == marker:
                return bdry_type
        raise KeyError(f"Boundary marker {marker} is not defined.")

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[Tuple[int, BoundaryType]]:
        return iter(self._pairs)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{m}: {t.name}" for m, t in self._pairs)
        return f"BoundaryDefinition({{{pairs}}})"


@dataclass(eq=False)
class Boundary:
    """
    One boundary segment of the dual mesh.

    Attributes:
        type (BoundaryType): The physical type of this boundary.
        marker (int): The boundary marker this segment was built from.
        points (np.ndarray): Ids of the vertices touched by this boundary's
            edges, strictly ascending.
            - Shape: `(n_points,)`
        edges (np.ndarray): Vertex id pairs of this boundary's edges, in the
            order they appear in the primal boundary edge list.
            - Shape: `(n_edges, 2)`
        normals (np.ndarray): Outward normal at each boundary point.
            - Shape: `(n_points, 2)`
        mass_flux (np.ndarray): Mass flux at each boundary point.
            - Shape: `(n_points,)`
        edge_normals (np.ndarray): Interior normal at each boundary edge.
            - Shape: `(n_edges, 2)`
        edge_mass_flux (np.ndarray): Interior mass flux at each boundary edge.
            - Shape: `(n_edges,)`
    """

    type: BoundaryType
    marker: int
    points: np.ndarray
    edges: np.ndarray
    normals: np.ndarray = field(init=False)
    mass_flux: np.ndarray = field(init=False)
    edge_normals: np.ndarray = field(init=False)
    edge_mass_flux: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        self.normals = np.zeros((self.n_points, 2))
        self.mass_flux = np.zeros(self.n_points)
        self.edge_normals = np.zeros((self.n_edges, 2))
        self.edge_mass_flux = np.zeros(self.n_edges)

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def n_edges(self) -> int:
        return len(self.edges)


def build_boundaries(
    primary_mesh: "PrimaryMesh", boundary_definition: BoundaryDefinition
) -> List[Boundary]:
    """
    Partitions the boundary edges of a primal mesh into boundary segments.

    One `Boundary` is created per definition entry, in definition order. A
    marker without any matching edge yields an empty boundary.

    Args:
        primary_mesh: The primal mesh whose boundary edges are partitioned.
        boundary_definition: Ordered marker -> type pairs.

    Returns:
        The list of boundaries.

    Raises:
        IndexError: If a boundary edge references a vertex id outside
            `[0, n_vertices)`.
    """
    n_vertices = primary_mesh.n_vertices
    edges = primary_mesh.boundary_edges
    markers = primary_mesh.boundary_edge_markers

    # Every boundary edge is checked, including those whose marker is not defined.
    bad = np.nonzero(np.any((edges < 0) | (edges >= n_vertices), axis=1))[0]
    if bad.size > 0:
        i_edge = bad[0]
        raise IndexError(
            f"Boundary edge {edges[i_edge].tolist()} with marker {markers[i_edge]} "
            f"exceeds the number of primary grid vertices ({n_vertices})."
        )

    boundaries = []
    for marker, bdry_type in boundary_definition:
        marked_edges = edges[markers == marker]
        # np.unique returns the touched vertex ids sorted ascending.
        points = np.unique(marked_edges)
        boundaries.append(
            Boundary(
                type=bdry_type,
                marker=marker,
                points=points.astype(int),
                edges=marked_edges.reshape(-1, 2).copy(),
            )
        )

    return boundaries


class BoundaryHandler:
    """
    Interface for the boundary condition callbacks of a flow solver.

    A solver subclasses this for each boundary type it supports and registers
    the instances in a `BoundaryHandlerRegistry`. The dual mesh never calls
    these methods itself.
    """

    def set_dirichlet(self, solver_state, boundary: Boundary) -> None:
        raise NotImplementedError("Subclasses must implement this method.")

    def set_neumann(self, solver_state, boundary: Boundary) -> None:
        raise NotImplementedError("Subclasses must implement this method.")

    def set_boundary_mass_flux(self, solver_state, boundary: Boundary) -> None:
        raise NotImplementedError("Subclasses must implement this method.")

    def set_interior_mass_flux(self, solver_state, boundary: Boundary) -> None:
        """Fills `boundary.edge_mass_flux`, the flux across each boundary edge."""
        raise NotImplementedError("Subclasses must implement this method.")


class BoundaryHandlerRegistry:
    """Maps each `BoundaryType` to the handler that applies its conditions."""

    def __init__(self) -> None:
        self._handlers: Dict[BoundaryType, BoundaryHandler] = {}

    def register(
        self, bdry_type: Union[BoundaryType, str], handler: BoundaryHandler
    ) -> None:
        self._handlers[BoundaryType.parse(bdry_type)] = handler

    def handler_for(self, boundary: Boundary) -> BoundaryHandler:
        try:
            return self._handlers[boundary.type]
        except KeyError as e:
            raise KeyError(
                f"No boundary handler registered for type {boundary.type.name} "
                f"(marker {boundary.marker})."
            ) from e

    def __contains__(self, bdry_type) -> bool:
        return BoundaryType.parse(bdry_type) in self._handlers
