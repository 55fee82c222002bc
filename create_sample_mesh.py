import gmsh

from fvm_dualmesh.dualmesh import BoundaryDefinition, DualMesh, PrimaryMesh
from fvm_dualmesh.meshgen import Geometry, MeshGenerator


def main():
    """Mesh a channel with gmsh, build its median dual and report on it."""
    # Define geometry parameters
    length = 2.0  # Length of the channel in the x-direction
    height = 1.0  # Height of the channel in the y-direction

    gmsh.initialize()
    gmsh.model.add("sample_channel")

    geom = Geometry("sample_channel")
    surface_tag = geom.rectangle(length, height, mesh_size=0.1)
    bottom, right, top, left = geom.surface_curves[surface_tag]

    output_dir = "data"
    mesher = MeshGenerator(surface_tags=surface_tag, output_dir=output_dir)
    inlet = mesher.add_boundary_group("inlet", [left], tag=1)
    outlet = mesher.add_boundary_group("outlet", [right], tag=2)
    wall = mesher.add_boundary_group("wall", [bottom, top], tag=3)

    mesh_params = {surface_tag: {"mesh_type": "quads", "char_length": 0.1}}
    msh_file = mesher.generate(mesh_params=mesh_params, filename="sample_channel.msh")
    gmsh.finalize()

    primary_mesh = PrimaryMesh.from_gmsh(msh_file)
    boundary_definition = BoundaryDefinition(
        [(inlet, "inlet"), (outlet, "outlet"), (wall, "wall")]
    )
    dual_mesh = DualMesh.from_primary_mesh(primary_mesh, boundary_definition)

    dual_mesh.print_summary()
    dual_mesh.plot(f"{output_dir}/sample_channel_dual.png")


if __name__ == "__main__":
    main()
