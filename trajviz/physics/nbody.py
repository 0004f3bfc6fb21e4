"""
Preview n-body kinematics for the 3D scene visualizer.

The scene uses its own units and a cheap integrator: bodies attract each other
pairwise (brute force) and are advanced with symplectic Euler at a fixed step.
This is only meant to make a scene move plausibly while the real trajectories
come from an external propagator.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

@dataclass
class BodySetting:
    """Initial conditions and appearance of a scene body."""
    name: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    mu: float = 0.0       # gravitational parameter (scene units)
    radius: float = 1.0   # display and picking radius
    color: Tuple[float, float, float] = (0.8, 0.8, 0.8)
    emissive: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float)
        self.velocity = np.asarray(self.velocity, dtype=float)
        if self.mu < 0:
            raise ValueError(f"{self.name}: mu must be non-negative, got {self.mu}")
        if self.radius <= 0:
            raise ValueError(f"{self.name}: radius must be positive, got {self.radius}")

    @property
    def is_light_source(self) -> bool:
        return any(channel > 0 for channel in self.emissive)

    def orbiting(self, other: "BodySetting", axis: Sequence[float]) -> "BodySetting":
        """
        Copy of this setting with the velocity of a circular orbit around ``other``.

        The orbit normal is ``cross(separation, axis)`` so ``axis`` chooses the
        orbital plane; the other body's velocity is added on top.
        """
        separation = self.position - other.position
        distance = np.linalg.norm(separation)
        if distance == 0:
            raise ValueError(f"{self.name} and {other.name} share a position")

        direction = np.cross(separation, np.asarray(axis, dtype=float))
        norm = np.linalg.norm(direction)
        if norm == 0:
            raise ValueError(f"Axis {axis} is parallel to the separation of {self.name} and {other.name}")

        speed = np.sqrt((self.mu + other.mu) / distance)
        return replace(self, velocity=direction / norm * speed + other.velocity)

def pairwise_accelerations(positions: np.ndarray, mus: np.ndarray) -> np.ndarray:
    """
    Brute-force gravitational accelerations.

    Args:
        positions: Body positions, shape (n, 3)
        mus: Gravitational parameters, shape (n,); zero means massless

    Returns:
        Accelerations, shape (n, 3)
    """
    positions = np.asarray(positions, dtype=float)
    mus = np.asarray(mus, dtype=float)

    # separation[i, j] = p_j - p_i
    separation = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    distance = np.linalg.norm(separation, axis=-1)

    with np.errstate(divide='ignore', invalid='ignore'):
        inv_cube = np.where(distance > 0, 1.0 / distance**3, 0.0)

    weights = inv_cube * mus[np.newaxis, :]
    return np.einsum('ij,ijk->ik', weights, separation)

def symplectic_euler(acceleration: np.ndarray,
                     velocity: np.ndarray,
                     position: np.ndarray,
                     dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Kick then drift: returns (velocity, position)."""
    velocity = velocity + acceleration * dt
    position = position + velocity * dt
    return velocity, position

class NBodySystem:
    """Mutable state of all bodies in a scene."""

    def __init__(self,
                 names: Sequence[str],
                 positions: np.ndarray,
                 velocities: np.ndarray,
                 mus: Sequence[float]):
        self.names = list(names)
        self.positions = np.array(positions, dtype=float).reshape(-1, 3)
        self.velocities = np.array(velocities, dtype=float).reshape(-1, 3)
        self.mus = np.array(mus, dtype=float)

        n = len(self.names)
        if not (len(self.positions) == len(self.velocities) == len(self.mus) == n):
            raise ValueError("names, positions, velocities and mus must have the same length")
        if len(set(self.names)) != n:
            raise ValueError(f"Body names must be unique: {self.names}")

        self.time = 0.0

    @classmethod
    def from_settings(cls, settings: Sequence[BodySetting]) -> "NBodySystem":
        return cls(
            names=[s.name for s in settings],
            positions=np.array([s.position for s in settings]),
            velocities=np.array([s.velocity for s in settings]),
            mus=[s.mu for s in settings],
        )

    def __len__(self) -> int:
        return len(self.names)

    def index(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"Unknown body: {name}") from None

    def state_of(self, name: str) -> Tuple[np.ndarray, np.ndarray]:
        i = self.index(name)
        return self.positions[i].copy(), self.velocities[i].copy()

    def accelerations(self) -> np.ndarray:
        return pairwise_accelerations(self.positions, self.mus)

    def step(self, dt: float, n_steps: int = 1) -> None:
        for _ in range(n_steps):
            self.velocities, self.positions = symplectic_euler(
                self.accelerations(), self.velocities, self.positions, dt
            )
            self.time += dt

    def copy(self) -> "NBodySystem":
        other = NBodySystem(self.names, self.positions, self.velocities, self.mus)
        other.time = self.time
        return other

    def predict(self, steps: int, dt: float) -> np.ndarray:
        """
        Future positions without touching this system.

        Returns:
            Array of shape (steps + 1, n, 3); index 0 is the current state
        """
        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")

        ghost = self.copy()
        path = np.empty((steps + 1, len(self), 3))
        path[0] = ghost.positions
        for k in range(1, steps + 1):
            ghost.step(dt)
            path[k] = ghost.positions
        return path

    def record(self, steps: int, dt: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Advance this system, keeping every state.

        Returns:
            times (steps + 1,) and states (steps + 1, n, 6)
        """
        times = np.empty(steps + 1)
        states = np.empty((steps + 1, len(self), 6))
        times[0] = self.time
        states[0] = np.hstack([self.positions, self.velocities])
        for k in range(1, steps + 1):
            self.step(dt)
            times[k] = self.time
            states[k] = np.hstack([self.positions, self.velocities])
        return times, states

@dataclass
class PredictionDraw:
    """How a body's predicted path is drawn."""
    color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    reference: Optional[str] = None  # draw relative to this body
    steps: Optional[int] = None      # None draws all, 0 hides the path

def relative_prediction(prediction: np.ndarray, body: int, reference: Optional[int] = None) -> np.ndarray:
    """
    Predicted path of one body, optionally in the frame of a reference body.

    The relative path is anchored on the reference's current position so it
    is drawn around where the reference is now.
    """
    path = prediction[:, body, :]
    if reference is None:
        return path.copy()
    ref_path = prediction[:, reference, :]
    return path - ref_path + ref_path[0]

def draw_paths(prediction: np.ndarray,
               names: Sequence[str],
               draws: Dict[str, PredictionDraw]) -> Dict[str, np.ndarray]:
    """Apply each body's PredictionDraw to a prediction from NBodySystem.predict."""
    paths = {}
    for i, name in enumerate(names):
        draw = draws.get(name, PredictionDraw())
        if draw.steps == 0:
            continue
        reference = names.index(draw.reference) if draw.reference is not None else None
        path = relative_prediction(prediction, i, reference)
        if draw.steps is not None:
            path = path[:draw.steps + 1]
        paths[name] = path
    return paths

def total_energy(system: NBodySystem) -> float:
    """Kinetic plus potential energy per unit "G", used to check stepping sanity."""
    masses = system.mus
    kinetic = 0.5 * np.sum(masses * np.sum(system.velocities**2, axis=1))
    potential = 0.0
    for i in range(len(system)):
        for j in range(i + 1, len(system)):
            d = np.linalg.norm(system.positions[j] - system.positions[i])
            if d > 0:
                potential -= masses[i] * masses[j] / d
    return float(kinetic + potential)

def bodies_summary(settings: List[BodySetting]) -> str:
    return ", ".join(f"{s.name} (mu={s.mu:g}, r={s.radius:g})" for s in settings)
