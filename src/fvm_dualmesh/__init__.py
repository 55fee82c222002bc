"""
FVM-DualMesh

A Python package for building median-dual control-volume meshes from 2D
triangle/quad meshes for Finite Volume Method (FVM) solvers.
"""

from . import common
from . import dualmesh
from . import meshgen

__all__ = [
    "common",
    "dualmesh",
    "meshgen",
]
