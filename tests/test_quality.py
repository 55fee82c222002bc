import unittest

from fvm_dualmesh.dualmesh import (
    BoundaryDefinition,
    DualMesh,
    DualMeshQuality,
    PrimaryMesh,
)
from fvm_dualmesh.dualmesh.reporting import format_quality_summary
from tests.common_meshes import create_diamond_mesh, create_mixed_unit_square_mesh


class TestDualMeshQuality(unittest.TestCase):

    def test_valid_mesh(self):
        primary, bdry_def = create_mixed_unit_square_mesh()
        dual = DualMesh.from_primary_mesh(primary, bdry_def)
        quality = DualMeshQuality.from_mesh(dual)

        self.assertTrue(quality.is_valid)
        self.assertEqual(quality.n_non_positive_volumes, 0)
        self.assertEqual(quality.n_zero_normal_interior_faces, 0)
        self.assertLess(quality.area_conservation_error, 1e-12)
        # Corner vertex 1/64 against vertex 16, which touches three quads and
        # both halves of a split cell: 3/64 + 1/48.
        self.assertAlmostEqual(quality.min_max_volume_ratio, 3 / 13)
        self.assertEqual(quality.connectivity_issues, [])

    def test_volumes_are_copied(self):
        primary, bdry_def = create_diamond_mesh()
        dual = DualMesh.from_primary_mesh(primary, bdry_def)
        quality = DualMeshQuality.from_mesh(dual)

        dual.volumes[0] = -1.0
        self.assertGreater(quality.volumes[0], 0.0)

    def test_isolated_vertex(self):
        # Vertex 4 is not used by any element.
        primary = PrimaryMesh(
            vertex_coords=[[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [5.0, 5.0]],
            triangles=[[1, 2, 0], [2, 3, 0]],
            interior_edges=[[0, 2]],
            interior_edge_neighbors=[[0, 1]],
            boundary_edges=[[0, 1], [1, 2], [2, 3], [3, 0]],
            boundary_edge_neighbors=[0, 0, 1, 1],
            boundary_edge_markers=[1, 1, 1, 1],
        )
        with self.assertWarns(UserWarning):
            dual = DualMesh.from_primary_mesh(primary, BoundaryDefinition([(1, "wall")]))
        quality = DualMeshQuality.from_mesh(dual)

        self.assertFalse(quality.is_valid)
        self.assertEqual(quality.n_non_positive_volumes, 1)
        self.assertTrue(
            any("without any dual face" in issue for issue in quality.connectivity_issues)
        )

    def test_summary_text(self):
        primary, bdry_def = create_diamond_mesh()
        quality = DualMeshQuality.from_mesh(DualMesh.from_primary_mesh(primary, bdry_def))
        summary = format_quality_summary(quality)

        self.assertIn("Dual Mesh Quality Metrics", summary)
        self.assertIn("Min/Max Volume Ratio", summary)
        self.assertIn("No issues found.", summary)
        self.assertEqual(format_quality_summary(None), "Quality metrics not computed.")


if __name__ == "__main__":
    unittest.main()
