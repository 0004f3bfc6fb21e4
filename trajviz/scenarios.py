"""
Built-in scenarios of the trajectory visualizers.

This module provides:
- Scenario: the scenarios offered by the scenario picker
- Body settings of each scenario (star, planet, moon and comet)
- Scenario runs: preview n-body propagation turned into Trajectory objects
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import numpy as np

from .data.trajectory import Trajectory
from .infra.utils import Timer, format_duration
from .physics.clock import PhysicsSettings
from .physics.nbody import BodySetting, NBodySystem, PredictionDraw, bodies_summary, draw_paths, total_energy

logger = logging.getLogger(__name__)

# Scene time simulated by a run when no duration is given (min)
DEFAULT_RUN_MINUTES = 5
# Scene time covered by prediction trails (min)
DEFAULT_PREDICTION_MINUTES = 5

STAR_COLOR = (1.0, 1.0, 0.9)
PLANET_COLOR = (0.0, 0.6, 1.0)
MOON_COLOR = (0.6, 0.4, 0.1)
COMET_COLOR = (0.3, 0.3, 0.3)

def star_system(star: str = "Star",
                planet: str = "Planet",
                moon: str = "Moon",
                comet: Optional[str] = "Comet") -> List[BodySetting]:
    """
    A star with an orbiting planet, a moon around the planet and a comet.

    Args:
        star, planet, moon: Body names
        comet: Name of the comet, or None to leave it out

    Returns:
        Body settings in spawn order
    """
    star_body = BodySetting(
        name=star,
        velocity=np.array([-0.1826, -0.001, 0.0]),
        mu=5e3,
        radius=8.0,
        color=STAR_COLOR,
        emissive=tuple(2.0 * c for c in STAR_COLOR),
    )

    planet_body = BodySetting(
        name=planet,
        position=np.array([0.0, 60.0, 0.0]),
        mu=100.0,
        radius=2.0,
        color=PLANET_COLOR,
    ).orbiting(star_body, axis=(0.0, 0.0, 1.0))

    moon_body = BodySetting(
        name=moon,
        position=planet_body.position + np.array([4.5, 0.0, 0.0]),
        mu=1.0,
        radius=0.6,
        color=MOON_COLOR,
    ).orbiting(planet_body, axis=(0.0, 0.5, -1.0))

    bodies = [star_body, planet_body, moon_body]
    if comet is not None:
        bodies.append(BodySetting(
            name=comet,
            position=np.array([-200.0, 138.0, -18.0]),
            velocity=np.array([2.8, 0.15, 0.4]),
            mu=0.0,
            radius=0.1,
            color=COMET_COLOR,
        ))
    return bodies

@dataclass
class ScenarioResult:
    """Output of a scenario run."""
    scenario: "Scenario"
    bodies: List[BodySetting]
    trajectories: Dict[str, Trajectory]
    predictions: Dict[str, np.ndarray]  # drawn prediction trails, (steps + 1, 3) each
    selected: Optional[str]
    followed: Optional[str]
    draws: Dict[str, PredictionDraw] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return max(t.duration for t in self.trajectories.values())

    def body(self, name: str) -> BodySetting:
        for setting in self.bodies:
            if setting.name == name:
                return setting
        raise KeyError(f"Unknown body: {name}")

    def relative_trajectory(self, name: str) -> Trajectory:
        """
        Trajectory of a body relative to its reference body.

        The two-body gravitational parameter (body plus reference) is used so
        the orbital elements describe the relative orbit.
        """
        draw = self.draws.get(name)
        if draw is None or draw.reference is None:
            raise ValueError(f"{name} has no reference body")
        mu = self.body(name).mu + self.body(draw.reference).mu
        return self.trajectories[name].relative_to(
            self.trajectories[draw.reference],
            name=f"{name} wrt {draw.reference}",
            mu=mu,
        )

    def focus_trajectory(self) -> Trajectory:
        """
        Trajectory shown in the orbital parameter plots.

        The followed body relative to its reference, or the first body that
        has a reference when the followed one has none.
        """
        candidates = [self.followed] + [b.name for b in self.bodies]
        for name in candidates:
            draw = self.draws.get(name)
            if draw is not None and draw.reference is not None:
                return self.relative_trajectory(name)
        raise ValueError(f"No body of {self.scenario} has a reference body")

    def summary(self) -> str:
        return (f"{self.scenario}: {bodies_summary(self.bodies)}; "
                f"{format_duration(self.duration, 2)} of scene time")

class Scenario(Enum):
    """Scenarios offered by the scenario picker."""
    LUNAR_TRANSFER = "Lunar Transfer"
    ORBIT_DESIGN = "Orbit Design"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def options(cls) -> List["Scenario"]:
        return [cls.LUNAR_TRANSFER, cls.ORBIT_DESIGN]

    @classmethod
    def from_name(cls, name: str) -> "Scenario":
        """Accepts ``"Lunar Transfer"``, ``"LUNAR_TRANSFER"`` or ``"lunar-transfer"``."""
        key = name.strip().lower().replace('-', ' ').replace('_', ' ')
        for scenario in cls:
            if key == scenario.value.lower():
                return scenario
        raise ValueError(f"Unknown scenario: {name!r} (choose from {[str(s) for s in cls]})")

    def bodies(self) -> List[BodySetting]:
        if self == Scenario.LUNAR_TRANSFER:
            return star_system("Sun", "Earth", "Luna", comet=None)
        return star_system()

    def draws(self) -> Dict[str, PredictionDraw]:
        star, planet, moon = (b.name for b in self.bodies()[:3])
        draws = {
            star: PredictionDraw(color=STAR_COLOR, steps=0),
            planet: PredictionDraw(color=PLANET_COLOR, reference=star),
            moon: PredictionDraw(color=MOON_COLOR, reference=planet),
        }
        if self == Scenario.ORBIT_DESIGN:
            draws["Comet"] = PredictionDraw(color=COMET_COLOR)
        return draws

    @property
    def selected(self) -> str:
        return self.bodies()[0].name

    @property
    def followed(self) -> str:
        if self == Scenario.LUNAR_TRANSFER:
            return "Earth"
        return self.bodies()[0].name

    def run(self,
            settings: Optional[PhysicsSettings] = None,
            duration: Optional[float] = None,
            prediction_steps: Optional[int] = None) -> ScenarioResult:
        """
        Propagate the scenario with the preview n-body kinematics.

        Args:
            settings: Physics step and time scale (defaults to 60 Hz)
            duration: Scene time to simulate (defaults to 5 minutes)
            prediction_steps: Length of the prediction trails in steps

        Returns:
            Trajectories of every body, prediction trails and view defaults
        """
        settings = settings or PhysicsSettings()
        if duration is None:
            steps = settings.steps_per_second() * 60 * DEFAULT_RUN_MINUTES
        else:
            if duration <= 0:
                raise ValueError(f"duration must be positive, got {duration}")
            steps = max(int(round(duration / settings.delta_time)), 1)
        if prediction_steps is None:
            prediction_steps = settings.steps_per_second() * 60 * DEFAULT_PREDICTION_MINUTES

        bodies = self.bodies()
        system = NBodySystem.from_settings(bodies)
        draws = self.draws()

        logger.info("Running %s: %s", self, bodies_summary(bodies))
        initial_energy = total_energy(system)
        with Timer(f"Scenario {self}"):
            prediction = system.predict(prediction_steps, settings.delta_time)
            times, states = system.record(steps, settings.delta_time)

        if not np.all(np.isfinite(states)):
            raise RuntimeError(f"Scenario {self} diverged (non-finite states)")
        logger.debug("%s energy drift: %.3e", self, total_energy(system) - initial_energy)

        # Absolute trajectories are described around the dominant body
        mu = float(max(b.mu for b in bodies))
        trajectories = {
            name: Trajectory(times, states[:, i, :], name=name, frame="scene", mu=mu)
            for i, name in enumerate(system.names)
        }

        return ScenarioResult(
            scenario=self,
            bodies=bodies,
            trajectories=trajectories,
            predictions=draw_paths(prediction, system.names, draws),
            selected=self.selected,
            followed=self.followed,
            draws=draws,
        )
