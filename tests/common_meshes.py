import numpy as np

from fvm_dualmesh.dualmesh import BoundaryDefinition, BoundaryType, PrimaryMesh


def create_single_triangle_mesh():
    """
    Provides the right triangle (0,0), (1,0), (0,1) with one marker per side.

    Returns:
        tuple: A tuple containing:
            - PrimaryMesh: The mesh.
            - BoundaryDefinition: Markers 1, 2, 3 as INLET, WALL, OUTLET.
    """
    mesh = PrimaryMesh(
        vertex_coords=[[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
        triangles=[[0, 1, 2]],
        boundary_edges=[[0, 1], [1, 2], [2, 0]],
        boundary_edge_neighbors=[0, 0, 0],
        boundary_edge_markers=[1, 2, 3],
    )
    bdry_def = BoundaryDefinition(
        [(1, BoundaryType.INLET), (2, BoundaryType.WALL), (3, BoundaryType.OUTLET)]
    )
    return mesh, bdry_def


def create_diamond_mesh():
    """
    Provides two triangles sharing the horizontal edge from (1, 0.5) to (0, 0.5).

    Vertex 0 is the right end and vertex 1 the left end of the shared edge,
    vertex 2 lies below and vertex 3 above it. Triangle 0 = (0, 1, 2)
    traverses the shared edge in ascending order, triangle 1 = (1, 0, 3) in
    descending order.

    Returns:
        tuple: A tuple containing:
            - PrimaryMesh: The mesh.
            - BoundaryDefinition: Marker 1 as WALL.
    """
    mesh = PrimaryMesh(
        vertex_coords=[[1.0, 0.5], [0.0, 0.5], [0.5, 0.0], [0.5, 1.0]],
        triangles=[[0, 1, 2], [1, 0, 3]],
        interior_edges=[[0, 1]],
        interior_edge_neighbors=[[0, 1]],
        boundary_edges=[[1, 2], [2, 0], [0, 3], [3, 1]],
        boundary_edge_neighbors=[0, 0, 1, 1],
        boundary_edge_markers=[1, 1, 1, 1],
    )
    bdry_def = BoundaryDefinition([(1, "wall")])
    return mesh, bdry_def


def create_mixed_unit_square_mesh():
    """
    Provides a 4x4 unit square mesh with the three right cells of the top row
    split into triangles (25 vertices, 6 triangles, 13 quads).

    Returns:
        tuple: A tuple containing:
            - PrimaryMesh: The mesh.
            - BoundaryDefinition: bottom/right/top/left as INLET/WALL/OUTLET/WALL.
    """
    mesh = PrimaryMesh.create_structured_mesh(4, 4, triangulated_cells=[13, 14, 15])
    bdry_def = BoundaryDefinition.from_dict(
        {1: "inlet", 2: "wall", 3: "outlet", 4: "wall"}
    )
    return mesh, bdry_def


def shoelace_area(coords: np.ndarray, cells) -> float:
    """Total area of the given cells, computed independently of the mesh classes."""
    total = 0.0
    for cell in cells:
        pts = coords[cell]
        x, y = pts[:, 0], pts[:, 1]
        total += 0.5 * abs(np.dot(x, np.roll(y, 1)) - np.dot(y, np.roll(x, 1)))
    return total
