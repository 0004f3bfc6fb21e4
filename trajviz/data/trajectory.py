"""
Trajectories computed by an external propagator.

This module provides:
- OrbitState, a single time-tagged state vector
- Trajectory, a time-ordered sequence of states with Hermite interpolation
- Orbital element history of a trajectory for 2D parameter plots
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.interpolate import CubicHermiteSpline

from ..physics.elements import MU_EARTH, cartesian_to_oe, specific_energy

STATE_COLUMNS = ['x', 'y', 'z', 'vx', 'vy', 'vz']

@dataclass
class OrbitState:
    """Orbital state vector."""
    r: np.ndarray  # Position (km) - shape (3,)
    v: np.ndarray  # Velocity (km/s) - shape (3,)
    t: float       # Time (s)

    @property
    def rmag(self) -> float:
        return float(np.linalg.norm(self.r))

    @property
    def vmag(self) -> float:
        return float(np.linalg.norm(self.v))

    def as_vector(self) -> np.ndarray:
        return np.concatenate([self.r, self.v])

class Trajectory:
    """Time-ordered states of one object, interpolated between samples."""

    def __init__(self,
                 epochs: Sequence[float],
                 states: np.ndarray,
                 name: str = "trajectory",
                 frame: str = "EME2000",
                 mu: float = MU_EARTH,
                 reference_epoch: Optional[datetime] = None):
        epochs = np.asarray(epochs, dtype=float)
        states = np.asarray(states, dtype=float)

        if epochs.ndim != 1:
            raise ValueError(f"epochs must be one-dimensional, got shape {epochs.shape}")
        if states.shape != (len(epochs), 6):
            raise ValueError(f"states must have shape ({len(epochs)}, 6), got {states.shape}")
        if len(epochs) < 2:
            raise ValueError("A trajectory needs at least two samples")
        if not (np.all(np.isfinite(epochs)) and np.all(np.isfinite(states))):
            raise ValueError(f"Trajectory {name} contains non-finite values")
        if np.any(np.diff(epochs) <= 0):
            raise ValueError(f"Trajectory {name} epochs must be strictly increasing")
        if mu <= 0:
            raise ValueError(f"mu must be positive, got {mu}")

        self.epochs = epochs
        self.states = states
        self.name = name
        self.frame = frame
        self.mu = mu
        self.reference_epoch = reference_epoch

        self._spline = CubicHermiteSpline(epochs, states[:, :3], states[:, 3:], axis=0)
        self._velocity_spline = self._spline.derivative()

    def __len__(self) -> int:
        return len(self.epochs)

    def __repr__(self) -> str:
        return (f"Trajectory(name={self.name!r}, frame={self.frame!r}, samples={len(self)}, "
                f"start={self.start:.3f}, end={self.end:.3f})")

    @property
    def start(self) -> float:
        return float(self.epochs[0])

    @property
    def end(self) -> float:
        return float(self.epochs[-1])

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def positions(self) -> np.ndarray:
        return self.states[:, :3]

    @property
    def velocities(self) -> np.ndarray:
        return self.states[:, 3:]

    def first(self) -> OrbitState:
        return self._sample(0)

    def last(self) -> OrbitState:
        return self._sample(-1)

    def _sample(self, index: int) -> OrbitState:
        state = self.states[index]
        return OrbitState(r=state[:3].copy(), v=state[3:].copy(), t=float(self.epochs[index]))

    def datetime_at(self, t: float) -> Optional[datetime]:
        if self.reference_epoch is None:
            return None
        return self.reference_epoch + timedelta(seconds=float(t))

    def _check_bounds(self, t) -> None:
        t = np.atleast_1d(t)
        # Allow round-off at the ends
        slack = 1e-9 * max(1.0, abs(self.end))
        if np.any(t < self.start - slack) or np.any(t > self.end + slack):
            raise ValueError(
                f"Epoch outside trajectory {self.name} bounds [{self.start}, {self.end}]"
            )

    def evaluate(self, t: float) -> OrbitState:
        """
        Interpolated state at ``t``.

        Positions use cubic Hermite interpolation through the sampled
        velocities; the velocity is the derivative of that interpolant.
        """
        self._check_bounds(t)
        t = float(np.clip(t, self.start, self.end))
        return OrbitState(r=self._spline(t), v=self._velocity_spline(t), t=t)

    def resample(self, epochs: Sequence[float]) -> np.ndarray:
        """States at many epochs, shape (n, 6)."""
        epochs = np.asarray(epochs, dtype=float)
        self._check_bounds(epochs)
        epochs = np.clip(epochs, self.start, self.end)
        return np.hstack([self._spline(epochs), self._velocity_spline(epochs)])

    def every(self, step: float) -> Iterator[OrbitState]:
        """States from start to end, ``step`` seconds apart."""
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        n = int(np.floor(self.duration / step + 1e-9))
        for k in range(n + 1):
            yield self.evaluate(self.start + k * step)

    def element_history(self, step: Optional[float] = None) -> pd.DataFrame:
        """
        Orbital elements over time, angles in degrees.

        Args:
            step: Resample every ``step`` seconds instead of using the samples
        """
        if step is None:
            epochs, states = self.epochs, self.states
        else:
            epochs = np.array([s.t for s in self.every(step)])
            states = self.resample(epochs)

        rows = []
        for t, state in zip(epochs, states):
            r, v = state[:3], state[3:]
            oe = cartesian_to_oe(r, v, self.mu, epoch=t).degrees()
            oe.update({
                'epoch': t,
                'rmag': float(np.linalg.norm(r)),
                'vmag': float(np.linalg.norm(v)),
                'energy': specific_energy(self.mu, r, v),
            })
            rows.append(oe)

        columns = ['epoch', 'sma', 'ecc', 'inc', 'raan', 'aop', 'ta', 'rmag', 'vmag', 'energy']
        return pd.DataFrame(rows, columns=columns)

    def relative_to(self, other: "Trajectory", name: Optional[str] = None, mu: Optional[float] = None) -> "Trajectory":
        """This trajectory expressed relative to ``other`` on this trajectory's epochs."""
        inside = (self.epochs >= other.start) & (self.epochs <= other.end)
        if inside.sum() < 2:
            raise ValueError(f"Trajectories {self.name} and {other.name} do not overlap")
        epochs = self.epochs[inside]
        states = self.states[inside] - other.resample(epochs)
        return Trajectory(
            epochs, states,
            name=name or f"{self.name} wrt {other.name}",
            frame=other.name,
            mu=mu if mu is not None else self.mu,
            reference_epoch=self.reference_epoch,
        )

    def find_all(self, event) -> list:
        from .events import find_events
        return find_events(self, event)

    def find_bracketed(self, start: float, end: float, event) -> list:
        from .events import find_events
        return find_events(self, event, start=start, end=end)

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self.states, columns=STATE_COLUMNS)
        df.insert(0, 'epoch', self.epochs)
        return df

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, **kwargs) -> "Trajectory":
        missing = [c for c in ['epoch'] + STATE_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Missing trajectory columns: {missing}")
        df = df.sort_values('epoch')
        return cls(df['epoch'].to_numpy(), df[STATE_COLUMNS].to_numpy(), **kwargs)
