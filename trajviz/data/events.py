"""
Orbital event search on trajectories.

An event is the zero crossing of a scalar function of the state, e.g. the
radial velocity for apsides. Crossings are bracketed on the trajectory samples
and refined with Brent's method on the interpolated trajectory.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np
from scipy.optimize import brentq

from ..physics.elements import cartesian_to_oe
from .trajectory import OrbitState, Trajectory

logger = logging.getLogger(__name__)

class Direction(Enum):
    """Which sign change of the event function counts."""
    RISING = "rising"
    FALLING = "falling"
    ANY = "any"

class StateParameter(Enum):
    """State parameters that events can be defined on."""
    PERIAPSIS = "periapsis"
    APOAPSIS = "apoapsis"
    TRUE_ANOMALY = "true_anomaly"
    RMAG = "rmag"

    @property
    def needs_value(self) -> bool:
        return self in (StateParameter.TRUE_ANOMALY, StateParameter.RMAG)

    @property
    def unit(self) -> str:
        return {
            StateParameter.PERIAPSIS: "km/s",
            StateParameter.APOAPSIS: "km/s",
            StateParameter.TRUE_ANOMALY: "deg",
            StateParameter.RMAG: "km",
        }[self]

def _wrap_degrees(angle: float) -> float:
    """Wrap to (-180, 180]."""
    wrapped = math.fmod(angle + 180.0, 360.0)
    if wrapped <= 0:
        wrapped += 360.0
    return wrapped - 180.0

@dataclass
class Event:
    """
    An orbital event.

    Attributes:
        parameter: State parameter the event is defined on
        value: Target value (true anomaly in degrees, radius in km)
        tolerance: Precision of the event epoch (s)
    """
    parameter: StateParameter
    value: Optional[float] = None
    tolerance: float = 1e-3

    def __post_init__(self):
        if self.parameter.needs_value and self.value is None:
            raise ValueError(f"{self.parameter.value} events need a target value")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")

    @classmethod
    def periapsis(cls) -> "Event":
        return cls(StateParameter.PERIAPSIS)

    @classmethod
    def apoapsis(cls) -> "Event":
        return cls(StateParameter.APOAPSIS)

    @classmethod
    def true_anomaly(cls, degrees: float) -> "Event":
        return cls(StateParameter.TRUE_ANOMALY, degrees)

    @classmethod
    def rmag(cls, km: float) -> "Event":
        return cls(StateParameter.RMAG, km)

    @classmethod
    def parse(cls, text: str) -> "Event":
        """Parse ``periapsis``, ``apoapsis``, ``ta:<deg>`` or ``rmag:<km>``."""
        name, _, value = text.strip().lower().partition(':')
        aliases = {
            'periapsis': StateParameter.PERIAPSIS,
            'apoapsis': StateParameter.APOAPSIS,
            'ta': StateParameter.TRUE_ANOMALY,
            'true_anomaly': StateParameter.TRUE_ANOMALY,
            'rmag': StateParameter.RMAG,
        }
        if name not in aliases:
            raise ValueError(f"Unknown event: {text!r}")
        try:
            target = float(value) if value else None
        except ValueError:
            raise ValueError(f"Invalid event value in {text!r}") from None
        return cls(aliases[name], target)

    @property
    def direction(self) -> Direction:
        if self.parameter == StateParameter.APOAPSIS:
            return Direction.FALLING
        if self.parameter == StateParameter.RMAG:
            return Direction.ANY
        return Direction.RISING

    @property
    def is_angular(self) -> bool:
        return self.parameter == StateParameter.TRUE_ANOMALY

    def eval(self, state: OrbitState, mu: float) -> float:
        """Event function; the event happens where this crosses zero."""
        if self.parameter in (StateParameter.PERIAPSIS, StateParameter.APOAPSIS):
            return float(np.dot(state.r, state.v) / np.linalg.norm(state.r))
        if self.parameter == StateParameter.TRUE_ANOMALY:
            ta = math.degrees(cartesian_to_oe(state.r, state.v, mu).nu)
            return _wrap_degrees(ta - self.value)
        return state.rmag - self.value

    def __str__(self) -> str:
        if self.value is None:
            return self.parameter.value
        return f"{self.parameter.value} = {self.value} {self.parameter.unit}"

def _crosses(f0: float, f1: float, direction: Direction) -> bool:
    if direction == Direction.RISING:
        return f0 < 0 <= f1
    if direction == Direction.FALLING:
        return f0 > 0 >= f1
    return (f0 < 0 <= f1) or (f0 > 0 >= f1)

def _leaves_zero(f1: float, direction: Direction) -> bool:
    if direction == Direction.RISING:
        return f1 > 0
    if direction == Direction.FALLING:
        return f1 < 0
    return True

def find_events(trajectory: Trajectory,
                event: Event,
                start: Optional[float] = None,
                end: Optional[float] = None,
                refine: int = 4) -> List[OrbitState]:
    """
    Find every occurrence of ``event`` on ``trajectory``.

    Args:
        trajectory: Trajectory to search
        event: Event to find
        start: Search window start (defaults to trajectory start)
        end: Search window end (defaults to trajectory end)
        refine: Number of sub-intervals per sample interval used for bracketing

    Returns:
        States at the event epochs, in time order (empty when none is found)
    """
    start = trajectory.start if start is None else max(start, trajectory.start)
    end = trajectory.end if end is None else min(end, trajectory.end)
    if end <= start:
        raise ValueError(f"Empty search window [{start}, {end}]")
    if refine < 1:
        raise ValueError(f"refine must be at least 1, got {refine}")

    inner = trajectory.epochs[(trajectory.epochs > start) & (trajectory.epochs < end)]
    knots = np.concatenate([[start], inner, [end]])
    grid = [knots[0]]
    for t0, t1 in zip(knots[:-1], knots[1:]):
        grid.extend(np.linspace(t0, t1, refine + 1)[1:])
    grid = np.array(grid)

    def f(t: float) -> float:
        return event.eval(trajectory.evaluate(t), trajectory.mu)

    values = np.array([f(t) for t in grid])
    found = []
    # Zero exactly at the window start
    if values[0] == 0 and _leaves_zero(values[1], event.direction):
        found.append(trajectory.evaluate(grid[0]))
    for k in range(len(grid) - 1):
        f0, f1 = values[k], values[k + 1]
        if not _crosses(f0, f1, event.direction):
            continue
        if event.is_angular and abs(f1 - f0) > 180.0:
            # Wrap-around of the angle, not a crossing
            continue
        if f1 == 0:
            t_event = grid[k + 1]
        else:
            t_event = brentq(f, grid[k], grid[k + 1], xtol=event.tolerance)
        found.append(trajectory.evaluate(t_event))

    logger.debug("Found %d %s event(s) on %s", len(found), event, trajectory.name)
    return found
