"""
Animated 3D scene of a scenario's bodies.

This module provides:
- SceneState: preview n-body system, physics clock, selection, camera and
  prediction trails of a running scene
- SceneViewer: a matplotlib 3D animation of a SceneState with keyboard and
  mouse controls

The scene is redrawn from scratch on every frame.
"""

import logging
import math
import time
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation
from mpl_toolkits.mplot3d import proj3d

from ..gui.camera import Camera
from ..gui.labels import Labelled, label_anchor
from ..gui.selection import CanFollow, Clickable, SelectionState, pick_screen
from ..infra.utils import format_duration
from ..physics.clock import PhysicsSettings, PhysicsTime
from ..physics.elements import state_summary
from ..physics.nbody import NBodySystem, draw_paths
from ..scenarios import DEFAULT_PREDICTION_MINUTES, Scenario

logger = logging.getLogger(__name__)

MIN_TIME_SCALE = 1.0 / 64.0
MAX_TIME_SCALE = 64.0

# Keys the viewer handles itself; removed from matplotlib's default keymaps
VIEWER_KEYS = (' ', '+', '-', 'tab', 'f', 'left', 'right', 'up', 'down', 'r')

def marker_area(radius: float) -> float:
    """Scatter marker area (points squared) of a body of the given radius."""
    size = 20.0 * (1.0 + math.log10(1.0 + 10.0 * radius))
    return size ** 2 / 10.0

class SceneState:
    """Everything that changes while a scene runs."""

    def __init__(self,
                 scenario: Scenario = Scenario.ORBIT_DESIGN,
                 settings: Optional[PhysicsSettings] = None,
                 prediction_steps: Optional[int] = None,
                 camera: Optional[Camera] = None):
        self.scenario = scenario
        self.settings = settings or PhysicsSettings()
        if prediction_steps is None:
            prediction_steps = self.settings.steps_per_second() * 60 * DEFAULT_PREDICTION_MINUTES
        self.prediction_steps = prediction_steps

        self.bodies = {b.name: b for b in scenario.bodies()}
        self.system = NBodySystem.from_settings(list(self.bodies.values()))
        self.draws = scenario.draws()
        self.clock = PhysicsTime()
        self.camera = camera or Camera()

        self.labels = {name: Labelled.for_body(name, b.radius) for name, b in self.bodies.items()}
        self.clickables = {name: Clickable(b.radius) for name, b in self.bodies.items()}
        self.can_follow = {name: CanFollow.for_radius(b.radius) for name, b in self.bodies.items()}

        self.selection = SelectionState()
        self.select(scenario.selected)
        self.selection.follow(scenario.followed)
        self._track_followed()

        self.predictions: Dict[str, np.ndarray] = {}
        self.refresh_predictions()

    @property
    def names(self) -> List[str]:
        return list(self.system.names)

    def refresh_predictions(self) -> None:
        prediction = self.system.predict(self.prediction_steps, self.settings.delta_time)
        self.predictions = draw_paths(prediction, self.system.names, self.draws)

    def _track_followed(self) -> None:
        name = self.selection.followed
        if name is None:
            return
        position, _ = self.system.state_of(name)
        self.camera.follow(position, self.can_follow[name].min_camera_distance)

    def update(self, frame_delta: float) -> int:
        """
        Advance the scene by one rendered frame.

        Args:
            frame_delta: Wall-clock seconds since the previous frame

        Returns:
            Number of physics steps taken
        """
        steps = self.clock.advance(frame_delta, self.settings)
        if steps:
            self.system.step(self.settings.delta_time, steps)
            self.refresh_predictions()
        self._track_followed()
        return steps

    def run_steps(self, steps: int) -> None:
        """Take ``steps`` physics steps regardless of the frame clock."""
        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")
        self.system.step(self.settings.delta_time, steps)
        self.clock.elapsed += steps * self.settings.delta_time
        self.refresh_predictions()
        self._track_followed()

    def toggle_pause(self) -> bool:
        self.clock.paused = not self.clock.paused
        logger.info("Scene %s", "paused" if self.clock.paused else "resumed")
        return self.clock.paused

    def scale_time(self, factor: float) -> float:
        """Multiply the time scale, clamped to [1/64, 64]."""
        if factor <= 0:
            raise ValueError(f"Time scale factor must be positive, got {factor}")
        scale = float(np.clip(self.settings.time_scale * factor, MIN_TIME_SCALE, MAX_TIME_SCALE))
        self.settings.time_scale = scale
        return scale

    def select(self, name: Optional[str]) -> None:
        if name is not None and name not in self.bodies:
            raise KeyError(f"Unknown body: {name}")
        deselected, selected = self.selection.select(name)
        if deselected is not None:
            self.labels[deselected].set_selected(False)
        if selected is not None:
            self.labels[selected].set_selected(True)

    def cycle_selection(self) -> Optional[str]:
        names = self.names
        if self.selection.selected in names:
            name = names[(names.index(self.selection.selected) + 1) % len(names)]
        else:
            name = names[0]
        self.select(name)
        return name

    def follow_selected(self) -> Optional[str]:
        """Follow the selected body, starting from its saved camera distance."""
        name = self.selection.follow_selected()
        if name is not None:
            self.camera.distance = self.can_follow[name].saved_distance
            self._track_followed()
        return name

    def reset_view(self) -> None:
        """Forget camera moves and selection, back to the scenario defaults."""
        self.camera = Camera(fov_deg=self.camera.fov_deg)
        self.select(self.scenario.selected)
        self.selection.follow(self.scenario.followed)
        self._track_followed()

    def pick_at(self, x: float, y: float, targets: Dict[str, Tuple[float, float, float]]) -> Optional[str]:
        """Select the body drawn under a screen point (clears the selection on a miss)."""
        name = pick_screen(x, y, {n: t for n, t in targets.items() if n in self.clickables})
        self.select(name)
        return name

    def hud_lines(self) -> List[str]:
        lines = [
            f"Scenario: {self.scenario}",
            f"Time: {format_duration(self.clock.elapsed, 3)}",
            f"Time scale: x{self.settings.time_scale:g}" + (" (paused)" if self.clock.paused else ""),
            f"Following: {self.selection.followed or '-'}",
        ]
        selected = self.selection.selected
        if selected is None:
            return lines

        lines.append(f"Selected: {selected}")
        reference = self.draws[selected].reference if selected in self.draws else None
        if reference is not None:
            r, v = self.system.state_of(selected)
            r_ref, v_ref = self.system.state_of(reference)
            mu = self.bodies[selected].mu + self.bodies[reference].mu
            lines.append(f"Relative to {reference}:")
            lines.extend("  " + line for line in state_summary(mu, r - r_ref, v - v_ref, unit="u"))
        return lines

class SceneViewer:
    """Matplotlib window animating a SceneState."""

    def __init__(self, state: SceneState, fps: int = 30, figsize=(10, 8)):
        self.state = state
        self.fps = fps

        for key in [k for k in plt.rcParams if k.startswith('keymap.')]:
            plt.rcParams[key] = [k for k in plt.rcParams[key] if k not in VIEWER_KEYS]

        self.fig = plt.figure(figsize=figsize, facecolor='black')
        self.ax = self.fig.add_subplot(111, projection='3d')
        self.ax.disable_mouse_rotation()
        self.fig.canvas.mpl_connect('key_press_event', self.on_key)
        self.fig.canvas.mpl_connect('scroll_event', self.on_scroll)
        self.fig.canvas.mpl_connect('button_press_event', self.on_click)

        self._last_frame: Optional[float] = None
        self.animation = None

    def on_key(self, event) -> None:
        key = event.key
        if key == ' ':
            self.state.toggle_pause()
        elif key == '+':
            self.state.scale_time(2.0)
        elif key == '-':
            self.state.scale_time(0.5)
        elif key == 'tab':
            self.state.cycle_selection()
        elif key == 'f':
            self.state.follow_selected()
        elif key == 'r':
            self.state.reset_view()
        elif key in ('left', 'right'):
            self.state.camera.orbit(math.radians(-5 if key == 'left' else 5), 0.0)
        elif key in ('up', 'down'):
            self.state.camera.orbit(0.0, math.radians(5 if key == 'up' else -5))

    def on_scroll(self, event) -> None:
        self.state.camera.zoom(0.9 if event.button == 'up' else 1.1)

    def on_click(self, event) -> None:
        if event.inaxes is not self.ax or event.x is None:
            return
        self.state.pick_at(event.x, event.y, self.screen_targets())

    def screen_targets(self) -> Dict[str, Tuple[float, float, float]]:
        """Display position and marker radius (pixels) of every body with the current view."""
        proj = self.ax.get_proj()
        pixels_per_point = self.fig.dpi / 72.0
        targets = {}
        for name in self.state.names:
            position, _ = self.state.system.state_of(name)
            x, y, _ = proj3d.proj_transform(*position, proj)
            px, py = self.ax.transData.transform((x, y))
            radius = math.sqrt(marker_area(self.state.bodies[name].radius)) / 2.0 * pixels_per_point
            targets[name] = (float(px), float(py), radius)
        return targets

    def draw(self) -> None:
        ax, state, camera = self.ax, self.state, self.state.camera
        ax.cla()
        ax.set_facecolor('black')
        ax.set_axis_off()

        for name, path in state.predictions.items():
            color = state.draws[name].color if name in state.draws else (1.0, 1.0, 1.0)
            ax.plot(path[:, 0], path[:, 1], path[:, 2], color=color, linewidth=0.8, alpha=0.7)

        for name in state.names:
            body = state.bodies[name]
            position, _ = state.system.state_of(name)
            ax.scatter(*position, color=body.color, s=marker_area(body.radius), depthshade=False,
                       edgecolors='white' if body.is_light_source else 'none')
            label = state.labels[name]
            anchor = label_anchor(camera, label, position)
            ax.text(*anchor, label.text, color=label.color, fontsize=label.font_size,
                    ha='center', va='center')

        half = camera.distance * math.tan(math.radians(camera.fov_deg) / 2.0)
        for setter, center in zip((ax.set_xlim, ax.set_ylim, ax.set_zlim), camera.target):
            setter(center - half, center + half)
        ax.view_init(elev=math.degrees(camera.pitch), azim=math.degrees(camera.yaw))

        ax.text2D(0.01, 0.99, "\n".join(state.hud_lines()), transform=ax.transAxes,
                  color='white', fontsize=8, va='top', family='monospace')

    def _frame(self, _):
        now = time.perf_counter()
        delta = 0.0 if self._last_frame is None else now - self._last_frame
        self._last_frame = now
        self.state.update(delta)
        self.draw()
        return []

    def show(self) -> None:
        logger.info("Starting scene viewer for %s (space pause, +/- time scale, tab select, f follow)",
                    self.state.scenario)
        self.animation = FuncAnimation(self.fig, self._frame, interval=1000.0 / self.fps,
                                       cache_frame_data=False)
        plt.show()
