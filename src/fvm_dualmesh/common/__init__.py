from .utility import polygon_area, signed_polygon_area, plot_mesh

__all__ = ["polygon_area", "signed_polygon_area", "plot_mesh"]
