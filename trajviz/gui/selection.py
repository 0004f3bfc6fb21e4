"""
Body selection and camera following.

This module provides:
- Clickable and CanFollow body properties
- Ray picking of the body under the mouse, and screen picking of drawn markers
- SelectionState: which body is selected and which one the camera follows
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

@dataclass
class Clickable:
    """A body that can be picked with the mouse."""
    radius: float

@dataclass
class CanFollow:
    """A body the camera can follow."""
    min_camera_distance: float
    saved_distance: float  # camera distance restored when following starts

    @classmethod
    def for_radius(cls, radius: float) -> "CanFollow":
        return cls(min_camera_distance=3.0 * radius, saved_distance=20.0 * radius)

def ray_sphere_distance(origin: np.ndarray,
                        direction: np.ndarray,
                        center: np.ndarray,
                        radius: float) -> Optional[float]:
    """
    Distance along a ray to the first hit on a sphere.

    Args:
        origin: Ray origin
        direction: Unit ray direction
        center: Sphere center
        radius: Sphere radius

    Returns:
        Distance to the hit, or None when the ray misses or the sphere is behind
    """
    oc = np.asarray(origin, dtype=float) - np.asarray(center, dtype=float)
    b = float(np.dot(oc, direction))
    c = float(np.dot(oc, oc)) - radius**2
    discriminant = b * b - c
    if discriminant < 0:
        return None
    root = np.sqrt(discriminant)
    for t in (-b - root, -b + root):
        if t >= 0:
            return float(t)
    return None

def pick(origin: np.ndarray,
         direction: np.ndarray,
         bodies: Dict[str, Tuple[np.ndarray, Clickable]]) -> Optional[str]:
    """Name of the nearest body hit by the ray, if any."""
    direction = np.asarray(direction, dtype=float)
    direction = direction / np.linalg.norm(direction)

    best, best_distance = None, np.inf
    for name, (center, clickable) in bodies.items():
        distance = ray_sphere_distance(origin, direction, center, clickable.radius)
        if distance is not None and distance < best_distance:
            best, best_distance = name, distance
    return best

def pick_screen(x: float,
                y: float,
                targets: Dict[str, Tuple[float, float, float]],
                tolerance: float = 3.0) -> Optional[str]:
    """
    Name of the body whose marker is under a screen point, if any.

    Args:
        x, y: Screen point (pixels)
        targets: Body name -> (x, y, radius) of its drawn marker (pixels)
        tolerance: Slack around each marker (pixels)

    Returns:
        The nearest marker containing the point, or None
    """
    best, best_distance = None, np.inf
    for name, (cx, cy, radius) in targets.items():
        distance = float(np.hypot(x - cx, y - cy))
        if distance <= radius + tolerance and distance < best_distance:
            best, best_distance = name, distance
    return best

class SelectionState:
    """Selected and followed bodies of a scene."""

    def __init__(self, selected: Optional[str] = None, followed: Optional[str] = None):
        self.selected = selected
        self.followed = followed

    def select(self, name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
        """
        Select ``name`` (None clears the selection).

        Returns:
            (deselected, selected) body names, None where nothing changed
        """
        if name == self.selected:
            return None, None
        deselected, self.selected = self.selected, name
        logger.debug("Selected %s (was %s)", name, deselected)
        return deselected, name

    def follow(self, name: Optional[str]) -> None:
        self.followed = name

    def follow_selected(self) -> Optional[str]:
        self.followed = self.selected
        return self.followed

    def clear(self) -> None:
        self.selected = None
        self.followed = None
