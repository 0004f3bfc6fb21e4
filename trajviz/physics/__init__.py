"""
Physics helpers of the visualizers.

This module provides:
- Keplerian elements and Cartesian state conversions
- Preview n-body kinematics of the 3D scene
- Fixed-step physics clock
"""

from .clock import PhysicsSettings, PhysicsTime
from .elements import (
    MU_EARTH,
    MU_MOON,
    MU_SUN,
    R_EARTH,
    OrbitalElements,
    cartesian_to_oe,
    oe_to_cartesian,
    state_summary,
)
from .nbody import BodySetting, NBodySystem, PredictionDraw

__all__ = [
    'PhysicsSettings', 'PhysicsTime',
    'MU_EARTH', 'MU_MOON', 'MU_SUN', 'R_EARTH',
    'OrbitalElements', 'cartesian_to_oe', 'oe_to_cartesian', 'state_summary',
    'BodySetting', 'NBodySystem', 'PredictionDraw',
]
