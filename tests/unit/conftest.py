"""
Shared fixtures for trajviz unit tests.

Trajectories are built from the analytic Keplerian solution so interpolation,
events and element history can be checked against exact values.
"""

import math
from dataclasses import replace

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from trajviz.data.trajectory import Trajectory
from trajviz.physics.elements import MU_EARTH, OrbitalElements, oe_to_cartesian

# Reference LEO orbit used throughout the tests
LEO = OrbitalElements(a=7000.0, e=0.05, i=0.9, raan=0.5, w=1.0, nu=1.0)


def orbital_period(a: float, mu: float = MU_EARTH) -> float:
    return 2 * math.pi * math.sqrt(a**3 / mu)


def kepler_states(oe: OrbitalElements, epochs: np.ndarray, mu: float = MU_EARTH) -> np.ndarray:
    """Exact two-body states at ``epochs`` (s after the elements' epoch)."""
    n = math.sqrt(mu / oe.a**3)
    e = oe.e
    E0 = 2 * math.atan2(math.sqrt(1 - e) * math.sin(oe.nu / 2), math.sqrt(1 + e) * math.cos(oe.nu / 2))
    M0 = E0 - e * math.sin(E0)

    states = []
    for t in epochs:
        M = M0 + n * t
        E = M
        for _ in range(50):
            E -= (E - e * math.sin(E) - M) / (1 - e * math.cos(E))
        nu = 2 * math.atan2(math.sqrt(1 + e) * math.sin(E / 2), math.sqrt(1 - e) * math.cos(E / 2))
        r, v = oe_to_cartesian(replace(oe, nu=nu), mu)
        states.append(np.concatenate([r, v]))
    return np.array(states)


def kepler_trajectory(oe: OrbitalElements = LEO, periods: float = 2.0, step: float = 30.0,
                      name: str = "leo", mu: float = MU_EARTH) -> Trajectory:
    epochs = np.arange(0.0, periods * orbital_period(oe.a, mu), step)
    return Trajectory(epochs, kepler_states(oe, epochs, mu), name=name, mu=mu)


@pytest.fixture
def leo_trajectory():
    """Two revolutions of the reference LEO orbit sampled every 30 s."""
    return kepler_trajectory()


@pytest.fixture
def short_trajectory():
    """Ten minutes of the reference LEO orbit sampled every 60 s."""
    epochs = np.arange(0.0, 601.0, 60.0)
    return Trajectory(epochs, kepler_states(LEO, epochs), name="short")
