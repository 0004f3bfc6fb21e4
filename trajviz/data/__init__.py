"""
Trajectory data consumed by the visualizers.

This module provides:
- Trajectories with interpolation and orbital element history
- Orbital event search
- Monte Carlo ensemble dispersion
- CSV/JSON trajectory files
"""

from .ensemble import TrajectoryEnsemble
from .events import Event, StateParameter, find_events
from .io import load_ensemble, load_trajectory, save_trajectory
from .trajectory import OrbitState, Trajectory

__all__ = [
    'TrajectoryEnsemble',
    'Event', 'StateParameter', 'find_events',
    'load_ensemble', 'load_trajectory', 'save_trajectory',
    'OrbitState', 'Trajectory',
]
