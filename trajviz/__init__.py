"""
trajviz: visualization of spacecraft trajectories computed by an external
astrodynamics toolkit.
"""

__version__ = "0.1.0"
