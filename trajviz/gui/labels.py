"""
Name labels drawn next to scene bodies.

Labels scale with the body radius, sit diagonally above-right of the body as
seen by the camera, and turn red while their body is selected.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .camera import Camera

LABEL_COLOR = (0.5, 0.5, 0.5)
SELECTED_LABEL_COLOR = (0.75, 0.0, 0.0)

@dataclass
class Labelled:
    """Label of one body."""
    text: str
    font_size: float
    offset: float  # world units, applied along the camera's right and up axes
    color: Tuple[float, float, float] = LABEL_COLOR

    @classmethod
    def for_body(cls, name: str, radius: float) -> "Labelled":
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")
        return cls(
            text=name,
            font_size=6.0 * math.log10(1000.0 * radius),
            offset=1.1 * radius,
        )

    def set_selected(self, selected: bool) -> None:
        self.color = SELECTED_LABEL_COLOR if selected else LABEL_COLOR

def label_anchor(camera: Camera, label: Labelled, body_position: np.ndarray) -> np.ndarray:
    """World point the label is centred on: the body offset along the camera axes."""
    return np.asarray(body_position, dtype=float) + camera.rotation() @ np.array([label.offset, label.offset, 0.0])

def label_position(camera: Camera,
                   label: Labelled,
                   body_position: np.ndarray,
                   label_size: Tuple[float, float],
                   width: int,
                   height: int) -> Optional[Tuple[float, float]]:
    """
    Top-left pixel of a label, or None when it should be hidden.

    Args:
        camera: Scene camera
        label: Label to place
        body_position: World position of the labelled body
        label_size: Rendered label (width, height) in pixels
        width, height: Viewport size in pixels
    """
    anchor = camera.world_to_viewport(label_anchor(camera, label, body_position), width, height)
    if anchor is None:
        return None
    return anchor[0] - label_size[0] / 2.0, anchor[1] - label_size[1] / 2.0
