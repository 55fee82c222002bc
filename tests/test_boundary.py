import json
import os
import tempfile
import unittest

import numpy as np

from fvm_dualmesh.dualmesh import (
    Boundary,
    BoundaryDefinition,
    BoundaryHandler,
    BoundaryHandlerRegistry,
    BoundaryType,
    PrimaryMesh,
    build_boundaries,
)
from tests.common_meshes import create_mixed_unit_square_mesh, create_single_triangle_mesh


class TestBoundaryType(unittest.TestCase):

    def test_parse(self):
        self.assertIs(BoundaryType.parse("inlet"), BoundaryType.INLET)
        self.assertIs(BoundaryType.parse(" Wall "), BoundaryType.WALL)
        self.assertIs(BoundaryType.parse(BoundaryType.PERIODIC), BoundaryType.PERIODIC)

    def test_parse_unknown(self):
        with self.assertRaises(ValueError):
            BoundaryType.parse("farfield")


class TestBoundaryDefinition(unittest.TestCase):

    def test_order_is_kept(self):
        bdry_def = BoundaryDefinition([(3, "outlet"), (1, "inlet"), (2, BoundaryType.WALL)])
        self.assertEqual(bdry_def.markers, [3, 1, 2])
        self.assertEqual(
            bdry_def.types, [BoundaryType.OUTLET, BoundaryType.INLET, BoundaryType.WALL]
        )
        self.assertEqual(len(bdry_def), 3)
        self.assertEqual(list(bdry_def)[0], (3, BoundaryType.OUTLET))

    def test_type_for(self):
        bdry_def = BoundaryDefinition.from_dict({1: "symmetry"})
        self.assertIs(bdry_def.type_for(1), BoundaryType.SYMMETRY)
        with self.assertRaises(KeyError):
            bdry_def.type_for(2)

    def test_duplicate_marker(self):
        bdry_def = BoundaryDefinition([(1, "wall")])
        with self.assertRaises(ValueError):
            bdry_def.add(1, "inlet")

    def test_repr(self):
        bdry_def = BoundaryDefinition([(1, "inlet"), (2, "wall")])
        self.assertEqual(repr(bdry_def), "BoundaryDefinition({1: INLET, 2: WALL})")

    def test_from_json_mapping(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "boundaries.json")
            with open(path, "w") as fh:
                json.dump({"1": "inlet", "2": "wall", "3": "outlet"}, fh)
            bdry_def = BoundaryDefinition.from_json(path)

        self.assertEqual(bdry_def.markers, [1, 2, 3])
        self.assertIs(bdry_def.type_for(3), BoundaryType.OUTLET)

    def test_from_json_list(self):
        data = {
            "boundaries": [
                {"marker": 4, "type": "periodic"},
                {"marker": 2, "type": "WALL"},
            ]
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "boundaries.json")
            with open(path, "w") as fh:
                json.dump(data, fh)
            bdry_def = BoundaryDefinition.from_json(path)

        self.assertEqual(bdry_def.markers, [4, 2])
        self.assertEqual(bdry_def.types, [BoundaryType.PERIODIC, BoundaryType.WALL])

    def test_from_json_bad_layout(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "boundaries.json")
            with open(path, "w") as fh:
                json.dump(["inlet", "wall"], fh)
            with self.assertRaises(ValueError):
                BoundaryDefinition.from_json(path)


class TestBuildBoundaries(unittest.TestCase):

    def test_storage_is_zero_initialized(self):
        mesh, bdry_def = create_mixed_unit_square_mesh()
        for bdry in build_boundaries(mesh, bdry_def):
            self.assertEqual(bdry.n_points, 5)
            self.assertEqual(bdry.n_edges, 4)
            self.assertEqual(bdry.normals.shape, (5, 2))
            self.assertEqual(bdry.mass_flux.shape, (5,))
            self.assertEqual(bdry.edge_normals.shape, (4, 2))
            self.assertEqual(bdry.edge_mass_flux.shape, (4,))
            self.assertFalse(np.any(bdry.normals))
            self.assertFalse(np.any(bdry.mass_flux))

    def test_segments_of_single_triangle(self):
        mesh, bdry_def = create_single_triangle_mesh()
        inlet, wall, outlet = build_boundaries(mesh, bdry_def)

        self.assertEqual(inlet.points.tolist(), [0, 1])
        self.assertEqual(wall.points.tolist(), [1, 2])
        # Points ascend even though the edge is stored as (2, 0).
        self.assertEqual(outlet.points.tolist(), [0, 2])
        self.assertEqual(outlet.edges.tolist(), [[2, 0]])

    def test_edges_keep_input_order(self):
        mesh = PrimaryMesh(
            vertex_coords=np.zeros((6, 2)),
            boundary_edges=[[4, 5], [0, 1], [3, 4], [1, 2]],
            boundary_edge_markers=[1, 2, 1, 2],
        )
        first, second = build_boundaries(mesh, BoundaryDefinition([(1, "wall"), (2, "inlet")]))
        self.assertEqual(first.edges.tolist(), [[4, 5], [3, 4]])
        self.assertEqual(first.points.tolist(), [3, 4, 5])
        self.assertEqual(second.edges.tolist(), [[0, 1], [1, 2]])

    def test_marker_without_edges(self):
        mesh, _ = create_single_triangle_mesh()
        (bdry,) = build_boundaries(mesh, BoundaryDefinition([(42, "symmetry")]))

        self.assertEqual(bdry.marker, 42)
        self.assertEqual(bdry.n_points, 0)
        self.assertEqual(bdry.n_edges, 0)
        self.assertEqual(bdry.edges.shape, (0, 2))
        self.assertEqual(bdry.normals.shape, (0, 2))

    def test_vertex_out_of_range(self):
        mesh = PrimaryMesh(
            vertex_coords=np.zeros((3, 2)),
            boundary_edges=[[0, 1], [1, 3]],
            boundary_edge_markers=[1, 1],
        )
        with self.assertRaises(IndexError):
            build_boundaries(mesh, BoundaryDefinition([(1, "wall")]))

    def test_negative_vertex(self):
        mesh = PrimaryMesh(
            vertex_coords=np.zeros((3, 2)),
            boundary_edges=[[-1, 0]],
            boundary_edge_markers=[1],
        )
        with self.assertRaises(IndexError):
            build_boundaries(mesh, BoundaryDefinition([(1, "wall")]))


class _WallHandler(BoundaryHandler):

    def __init__(self):
        self.visited = []

    def set_dirichlet(self, solver_state, boundary):
        self.visited.append(boundary.marker)


class TestBoundaryHandlers(unittest.TestCase):

    def setUp(self):
        mesh, bdry_def = create_single_triangle_mesh()
        self.boundaries = build_boundaries(mesh, bdry_def)

    def test_base_handler_is_abstract(self):
        handler = BoundaryHandler()
        with self.assertRaises(NotImplementedError):
            handler.set_neumann(None, self.boundaries[0])
        with self.assertRaises(NotImplementedError):
            handler.set_boundary_mass_flux(None, self.boundaries[0])
        with self.assertRaises(NotImplementedError):
            handler.set_interior_mass_flux(None, self.boundaries[0])

    def test_dispatch_by_type(self):
        registry = BoundaryHandlerRegistry()
        wall_handler = _WallHandler()
        registry.register("wall", wall_handler)

        self.assertIn(BoundaryType.WALL, registry)
        self.assertNotIn("inlet", registry)

        wall = self.boundaries[1]
        registry.handler_for(wall).set_dirichlet(None, wall)
        self.assertEqual(wall_handler.visited, [2])

        with self.assertRaises(KeyError):
            registry.handler_for(self.boundaries[0])

    def test_boundary_is_a_dataclass(self):
        bdry = Boundary(
            type=BoundaryType.OUTLET,
            marker=5,
            points=np.array([1, 2]),
            edges=np.array([[1, 2]]),
        )
        self.assertEqual(bdry.n_points, 2)
        self.assertEqual(bdry.edge_mass_flux.shape, (1,))


if __name__ == "__main__":
    unittest.main()
