"""
widgets.py - Qt widgets of the desktop visualizer

Provides the scenario bar, the matplotlib plot panel and the QThread workers
that run scenarios and load trajectory files without blocking the GUI.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal
from PyQt6.QtWidgets import (
    QComboBox, QHBoxLayout, QLabel, QPushButton, QTabWidget, QVBoxLayout, QWidget
)
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.backends.backend_qtagg import NavigationToolbar2QT as NavigationToolbar
from matplotlib.figure import Figure

from ..data.io import load_trajectory
from ..physics.clock import PhysicsSettings
from ..visualization.orbit_plots import plot_orbital_parameters, plot_trajectories_3d
from .controls import ScenarioPicker

logger = logging.getLogger(__name__)

# Resampling step of the orbital parameter plots (scene seconds)
PARAMETER_STEP = 1.0


class ScenarioWorker(QThread):
    """Worker thread running a scenario in the background."""

    scenario_finished = pyqtSignal(object)  # (ScenarioResult, focus trajectory, element history)
    scenario_failed = pyqtSignal(str)

    def __init__(self, picker: ScenarioPicker, settings: PhysicsSettings, duration: Optional[float] = None,
                 parent=None):
        super().__init__(parent)
        self.picker = picker
        self.settings = settings
        self.duration = duration

    def run(self):
        """Runs in the background thread."""
        try:
            result = self.picker.run(self.settings, duration=self.duration)
            focus = result.focus_trajectory()
            history = focus.element_history(step=PARAMETER_STEP)
            self.scenario_finished.emit((result, focus, history))
        except Exception as e:
            logger.error("Scenario %s failed: %s", self.picker, e, exc_info=True)
            self.scenario_failed.emit(str(e))


class TrajectoryLoadWorker(QThread):
    """Worker thread loading a trajectory file."""

    trajectory_loaded = pyqtSignal(object)  # (Trajectory, element history)
    load_failed = pyqtSignal(str)

    def __init__(self, path: str, parent=None):
        super().__init__(parent)
        self.path = path

    def run(self):
        try:
            trajectory = load_trajectory(self.path)
            self.trajectory_loaded.emit((trajectory, trajectory.element_history()))
        except Exception as e:
            logger.error("Could not load %s: %s", self.path, e, exc_info=True)
            self.load_failed.emit(str(e))


class ScenarioBar(QWidget):
    """Top bar: scenario dropdown and "run" button."""

    run_requested = pyqtSignal()

    def __init__(self, picker: ScenarioPicker, parent=None):
        super().__init__(parent)
        self.picker = picker

        layout = QHBoxLayout(self)
        layout.setContentsMargins(6, 4, 6, 4)

        layout.addWidget(QLabel(picker.label))
        self.combo = QComboBox()
        for scenario in picker.options:
            self.combo.addItem(str(scenario))
        self.combo.setCurrentText(str(picker.scenario))
        self.combo.currentIndexChanged.connect(self.picker.choose)
        layout.addWidget(self.combo)

        self.run_button = QPushButton(picker.run_label)
        self.run_button.clicked.connect(self.run_requested.emit)
        layout.addWidget(self.run_button)
        layout.addStretch()

    def set_running(self, running: bool) -> None:
        self.run_button.setEnabled(not running)
        self.combo.setEnabled(not running)

    def reset(self) -> None:
        self.combo.setCurrentIndex(0)


class PlotCanvas(FigureCanvas):
    """Matplotlib canvas for Qt integration."""

    def __init__(self, parent=None, width=8, height=6, dpi=100):
        self.figure = Figure(figsize=(width, height), dpi=dpi)
        super().__init__(self.figure)
        self.setParent(parent)

    def clear_plot(self):
        self.figure.clear()
        self.draw()


class PlotPanel(QWidget):
    """Central panel: orbital parameter line plots and a 3D trajectory plot."""

    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.tabs = QTabWidget()
        self.parameter_canvas = PlotCanvas(self)
        self.trajectory_canvas = PlotCanvas(self)
        for canvas, title in ((self.parameter_canvas, "Orbital parameters"),
                              (self.trajectory_canvas, "3D trajectories")):
            page = QWidget()
            page_layout = QVBoxLayout(page)
            page_layout.addWidget(NavigationToolbar(canvas, page))
            page_layout.addWidget(canvas)
            self.tabs.addTab(page, title)
        layout.addWidget(self.tabs)

    def show_scenario(self, result, focus, history) -> None:
        plot_orbital_parameters(focus, fig=self.parameter_canvas.figure, history=history)
        self.parameter_canvas.draw()

        self.trajectory_canvas.figure.clear()
        ax = self.trajectory_canvas.figure.add_subplot(111, projection='3d')
        plot_trajectories_3d(list(result.trajectories.values()), ax=ax, central_body_radius=None,
                             predictions=result.predictions, title=str(result.scenario), unit='scene units')
        self.trajectory_canvas.draw()

    def show_trajectory(self, trajectory, history) -> None:
        plot_orbital_parameters(trajectory, fig=self.parameter_canvas.figure, history=history)
        self.parameter_canvas.draw()

        self.trajectory_canvas.figure.clear()
        ax = self.trajectory_canvas.figure.add_subplot(111, projection='3d')
        plot_trajectories_3d([trajectory], ax=ax, title=trajectory.name)
        self.trajectory_canvas.draw()

    def reset(self) -> None:
        self.tabs.setCurrentIndex(0)
        self.parameter_canvas.clear_plot()
        self.trajectory_canvas.clear_plot()
