"""
Visualization module for trajviz.

This module provides matplotlib plots of trajectories, orbital parameters,
events and ensemble dispersion, and the animated 3D scene viewer.
"""

from .orbit_plots import (
    plot_central_body,
    plot_ensemble_dispersion,
    plot_events,
    plot_orbital_parameters,
    plot_trajectories_3d,
    save_figure,
)

__all__ = [
    'plot_central_body',
    'plot_ensemble_dispersion',
    'plot_events',
    'plot_orbital_parameters',
    'plot_trajectories_3d',
    'save_figure',
]
