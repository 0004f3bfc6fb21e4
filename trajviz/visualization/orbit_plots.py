"""
Trajectory plots for the trajviz visualizers.

This module creates:
1. 3D trajectory plots around a central body, with prediction trails
2. Orbital parameter line plots over time
3. Event markers on 3D trajectory plots
4. Monte Carlo ensemble dispersion plots

Every function draws into a figure/axes passed by the caller when given, so
the desktop GUI can reuse them on its embedded canvas.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401 (registers the 3d projection)

from ..data.trajectory import OrbitState, Trajectory
from ..physics.elements import R_EARTH

logger = logging.getLogger(__name__)

sns.set_palette("husl")

# Labels and units of element_history() columns
PARAMETER_LABELS = {
    'sma': 'Semi-major axis (km)',
    'ecc': 'Eccentricity',
    'inc': 'Inclination (deg)',
    'raan': 'RAAN (deg)',
    'aop': 'Argument of periapsis (deg)',
    'ta': 'True anomaly (deg)',
    'rmag': 'Radius (km)',
    'vmag': 'Speed (km/s)',
    'energy': 'Specific energy (km$^2$/s$^2$)',
}
DEFAULT_PARAMETERS = ('sma', 'ecc', 'inc', 'rmag')

def _time_axis(epochs: np.ndarray) -> Tuple[np.ndarray, str]:
    """Pick seconds, minutes or hours depending on the span."""
    span = float(epochs[-1] - epochs[0]) if len(epochs) else 0.0
    if span > 3 * 3600:
        return epochs / 3600.0, 'Time (hours)'
    if span > 3 * 60:
        return epochs / 60.0, 'Time (minutes)'
    return epochs, 'Time (s)'

def plot_central_body(ax, radius: float = R_EARTH, alpha: float = 0.3, color: str = 'lightblue'):
    """Plot the central body as a sphere."""
    u = np.linspace(0, 2 * np.pi, 50)
    v = np.linspace(0, np.pi, 50)
    x = radius * np.outer(np.cos(u), np.sin(v))
    y = radius * np.outer(np.sin(u), np.sin(v))
    z = radius * np.outer(np.ones(np.size(u)), np.cos(v))

    ax.plot_surface(x, y, z, alpha=alpha, color=color, linewidth=0, antialiased=True)

def _set_equal_limits(ax, points: np.ndarray) -> None:
    center = (points.max(axis=0) + points.min(axis=0)) / 2.0
    half = max(np.max(points.max(axis=0) - points.min(axis=0)) / 2.0, 1e-9) * 1.1
    ax.set_xlim([center[0] - half, center[0] + half])
    ax.set_ylim([center[1] - half, center[1] + half])
    ax.set_zlim([center[2] - half, center[2] + half])

def plot_trajectories_3d(trajectories: Sequence[Trajectory],
                         ax=None,
                         central_body_radius: Optional[float] = R_EARTH,
                         predictions: Optional[Dict[str, np.ndarray]] = None,
                         title: Optional[str] = None,
                         unit: str = 'km'):
    """
    Plot trajectories in 3D.

    Args:
        trajectories: Trajectories to draw
        ax: Existing 3D axes (a new figure is created when None)
        central_body_radius: Radius of the sphere drawn at the origin, None for no sphere
        predictions: Prediction trails by body name, drawn dashed
        title: Axes title
        unit: Distance unit for the axis labels

    Returns:
        (figure, axes)
    """
    if not trajectories:
        raise ValueError("No trajectories to plot")
    if ax is None:
        fig = plt.figure(figsize=(10, 8))
        ax = fig.add_subplot(111, projection='3d')
    else:
        fig = ax.figure

    if central_body_radius is not None:
        plot_central_body(ax, radius=central_body_radius, alpha=0.2)

    colors = sns.color_palette("husl", len(trajectories))
    all_points = []
    for color, traj in zip(colors, trajectories):
        positions = traj.positions
        ax.plot(positions[:, 0], positions[:, 1], positions[:, 2],
                color=color, linewidth=1.5, label=traj.name)
        # Circles: start, squares: end
        ax.scatter(*positions[0], color=color, s=40, marker='o')
        ax.scatter(*positions[-1], color=color, s=40, marker='s')
        all_points.append(positions)

        trail = (predictions or {}).get(traj.name)
        if trail is not None:
            ax.plot(trail[:, 0], trail[:, 1], trail[:, 2], color=color, linestyle='--', linewidth=1, alpha=0.6)
            all_points.append(trail)

    _set_equal_limits(ax, np.vstack(all_points))
    ax.set_xlabel(f'X ({unit})')
    ax.set_ylabel(f'Y ({unit})')
    ax.set_zlabel(f'Z ({unit})')
    if title:
        ax.set_title(title)
    ax.legend(loc='upper left', fontsize=8)
    return fig, ax

def plot_orbital_parameters(trajectory: Trajectory,
                            parameters: Sequence[str] = DEFAULT_PARAMETERS,
                            fig=None,
                            step: Optional[float] = None,
                            history: Optional[pd.DataFrame] = None):
    """
    Line plots of orbital parameters over time, one subplot per parameter.

    Args:
        trajectory: Trajectory to analyse
        parameters: element_history() columns to plot
        fig: Existing figure to draw into (cleared first)
        step: Resampling step passed to element_history()
        history: Precomputed element history

    Returns:
        The figure
    """
    unknown = [p for p in parameters if p not in PARAMETER_LABELS]
    if unknown:
        raise ValueError(f"Unknown orbital parameters: {unknown}")
    if not parameters:
        raise ValueError("No parameters to plot")

    if history is None:
        history = trajectory.element_history(step=step)
    if fig is None:
        fig = plt.figure(figsize=(12, 2.5 * len(parameters)))
    else:
        fig.clear()

    times, time_label = _time_axis(history['epoch'].to_numpy())
    colors = sns.color_palette("husl", len(parameters))
    axes = fig.subplots(len(parameters), 1, sharex=True, squeeze=False)[:, 0]

    for ax, name, color in zip(axes, parameters, colors):
        ax.plot(times, history[name].to_numpy(), color=color, linewidth=1.5)
        ax.set_ylabel(PARAMETER_LABELS[name], fontsize=8)
        ax.grid(True, alpha=0.3)

    axes[0].set_title(f'Orbital parameters of {trajectory.name}')
    axes[-1].set_xlabel(time_label)
    fig.tight_layout()
    return fig

def plot_events(states: List[OrbitState], ax, label: str = 'events', color: str = 'red', marker: str = '*'):
    """Mark event states on a 3D trajectory plot."""
    if not states:
        logger.info("No %s to plot", label)
        return ax
    positions = np.array([s.r for s in states])
    ax.scatter(positions[:, 0], positions[:, 1], positions[:, 2],
               color=color, marker=marker, s=120, label=f'{label} ({len(states)})', depthshade=False)
    ax.legend(loc='upper left', fontsize=8)
    return ax

def plot_ensemble_dispersion(table: pd.DataFrame, fig=None, title: str = 'Ensemble dispersion'):
    """
    Plot a dispersion table from TrajectoryEnsemble.dispersion().

    Top: deviation median with the 5-95 percentile band.
    Bottom: radial, in-track and cross-track standard deviations.
    """
    required = ['epoch', 'p05_dev_km', 'p50_dev_km', 'p95_dev_km',
                'radial_std_km', 'in_track_std_km', 'cross_track_std_km']
    missing = [c for c in required if c not in table.columns]
    if missing:
        raise ValueError(f"Dispersion table is missing columns: {missing}")

    if fig is None:
        fig = plt.figure(figsize=(12, 8))
    else:
        fig.clear()
    ax1, ax2 = fig.subplots(2, 1, sharex=True)

    times, time_label = _time_axis(table['epoch'].to_numpy())
    colors = sns.color_palette("husl", 3)

    ax1.fill_between(times, table['p05_dev_km'], table['p95_dev_km'],
                     color=colors[0], alpha=0.3, label='5-95th percentile')
    ax1.plot(times, table['p50_dev_km'], color=colors[0], linewidth=2, label='median')
    ax1.set_ylabel('Position deviation (km)')
    n_runs = int(table['n_runs'].iloc[0]) if 'n_runs' in table.columns else None
    ax1.set_title(f'{title} ({n_runs} runs)' if n_runs else title)
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    for color, column, label in zip(colors,
                                    ['radial_std_km', 'in_track_std_km', 'cross_track_std_km'],
                                    ['radial', 'in-track', 'cross-track']):
        ax2.plot(times, table[column], color=color, linewidth=1.5, label=label)
    ax2.set_ylabel('Standard deviation (km)')
    ax2.set_xlabel(time_label)
    ax2.grid(True, alpha=0.3)
    ax2.legend()

    fig.tight_layout()
    return fig

def save_figure(fig, path: Union[str, Path], dpi: int = 300) -> Path:
    """Save a figure, creating the output directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    logger.info("Saved figure to %s", path)
    return path
