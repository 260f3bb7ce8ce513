""" Manifold geometry and cell-wise assembly for finite elements """

__version__ = "0.1.0"
