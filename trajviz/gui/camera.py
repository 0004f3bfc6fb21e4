"""
Turntable camera of the 3D scene.

This module provides:
- Camera: orbiting view around a target point
- Following a moving body at a minimum distance
- Projection of world points and viewport rays
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

# Kept away from the poles so the up vector stays defined
MAX_PITCH = math.radians(85)

@dataclass
class Camera:
    """Represents a turntable camera orbiting a target point."""

    distance: float = 150.0
    yaw: float = math.radians(-90)
    pitch: float = math.radians(30)
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    fov_deg: float = 45.0
    min_distance: float = 0.5
    max_distance: float = 5000.0

    def copy(self) -> "Camera":
        return Camera(self.distance, self.yaw, self.pitch, self.target.copy(),
                      self.fov_deg, self.min_distance, self.max_distance)

    def forward(self) -> np.ndarray:
        """Unit vector from the camera towards the target."""
        cos_pitch = math.cos(self.pitch)
        return -np.array(
            [
                math.cos(self.yaw) * cos_pitch,
                math.sin(self.yaw) * cos_pitch,
                math.sin(self.pitch),
            ]
        )

    def right(self) -> np.ndarray:
        right = np.cross(self.forward(), np.array([0.0, 0.0, 1.0]))
        return right / np.linalg.norm(right)

    def up(self) -> np.ndarray:
        return np.cross(self.right(), self.forward())

    def rotation(self) -> np.ndarray:
        """Camera-to-world rotation; columns are right, up and backward."""
        return np.column_stack([self.right(), self.up(), -self.forward()])

    def position(self) -> np.ndarray:
        return self.target - self.forward() * self.distance

    def orbit(self, d_yaw: float, d_pitch: float) -> None:
        self.yaw = (self.yaw + d_yaw) % (2 * math.pi)
        self.pitch = float(np.clip(self.pitch + d_pitch, -MAX_PITCH, MAX_PITCH))

    def zoom(self, factor: float) -> None:
        if factor <= 0:
            raise ValueError(f"Zoom factor must be positive, got {factor}")
        self.distance = float(np.clip(self.distance * factor, self.min_distance, self.max_distance))

    def pan(self, dx: float, dy: float) -> None:
        self.target = self.target + self.right() * dx + self.up() * dy

    def follow(self, position: np.ndarray, min_camera_distance: Optional[float] = None) -> None:
        """Center on ``position`` without getting closer than ``min_camera_distance``."""
        self.target = np.asarray(position, dtype=float).copy()
        if min_camera_distance is not None:
            self.distance = max(self.distance, min_camera_distance)

    def view_matrix(self) -> np.ndarray:
        pos = self.position()
        mat = np.identity(4)
        mat[0, :3] = self.right()
        mat[1, :3] = self.up()
        mat[2, :3] = -self.forward()
        mat[:3, 3] = -mat[:3, :3] @ pos
        return mat

    def projection_matrix(self, aspect: float, near: float = 0.1, far: float = 1e5) -> np.ndarray:
        """OpenGL-style perspective projection."""
        f = 1.0 / math.tan(math.radians(self.fov_deg) / 2.0)
        mat = np.zeros((4, 4))
        mat[0, 0] = f / aspect
        mat[1, 1] = f
        mat[2, 2] = (far + near) / (near - far)
        mat[2, 3] = 2.0 * far * near / (near - far)
        mat[3, 2] = -1.0
        return mat

    def world_to_viewport(self, point: np.ndarray, width: int, height: int,
                          near: float = 0.1) -> Optional[Tuple[float, float]]:
        """
        Pixel coordinates of a world point, origin at the top left.

        Returns None for points behind the camera or outside the viewport.
        """
        eye = self.view_matrix() @ np.append(np.asarray(point, dtype=float), 1.0)
        if eye[2] > -near:
            return None

        clip = self.projection_matrix(width / height, near=near) @ eye
        ndc = clip[:3] / clip[3]
        if abs(ndc[0]) > 1.0 or abs(ndc[1]) > 1.0:
            return None

        x = (ndc[0] + 1.0) * 0.5 * width
        y = (1.0 - ndc[1]) * 0.5 * height
        return float(x), float(y)

    def viewport_ray(self, x: float, y: float, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
        """World-space ray (origin, unit direction) through a pixel, for picking."""
        ndc_x = 2.0 * x / width - 1.0
        ndc_y = 1.0 - 2.0 * y / height
        tan_half = math.tan(math.radians(self.fov_deg) / 2.0)
        direction = (self.forward()
                     + self.right() * ndc_x * tan_half * width / height
                     + self.up() * ndc_y * tan_half)
        return self.position(), direction / np.linalg.norm(direction)
