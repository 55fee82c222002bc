from .geometry import Geometry
from .mesh_generator import MeshGenerator

__all__ = ["Geometry", "MeshGenerator"]
