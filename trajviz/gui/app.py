"""
app.py - Desktop visualizer main window

Top bar with the scenario picker, central plot panel, File menu with UI zoom
and layout controls, and a status bar with the simulated scene time.
"""

import logging
import sys
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication, QFileDialog, QMainWindow, QMessageBox, QPlainTextEdit,
    QSplitter, QStatusBar, QVBoxLayout, QWidget
)

from ..infra.utils import format_duration
from ..physics.elements import state_summary
from ..utils.config import AppConfig
from .controls import ScenarioPicker
from .widgets import PlotPanel, ScenarioBar, ScenarioWorker, TrajectoryLoadWorker

logger = logging.getLogger(__name__)

ZOOM_STEP = 1.1
MIN_ZOOM = 0.5
MAX_ZOOM = 3.0


class MainWindow(QMainWindow):
    """
    Main window of the desktop visualizer.

    Provides:
    - Scenario bar (dropdown and "run" button)
    - Plot panel with orbital parameters and 3D trajectories
    - File menu: zoom, Organize Windows, Reset View State, Load trajectory
    """

    def __init__(self, config: Optional[AppConfig] = None):
        super().__init__()
        self.config = config or AppConfig()
        self.picker = ScenarioPicker()
        self.scenario_worker = None
        self.load_worker = None
        self.zoom_factor = 1.0
        self._base_font_size = QApplication.font().pointSizeF()

        self.setup_ui()
        self.setup_menu()

    def setup_ui(self):
        self.setWindowTitle("trajviz")
        self.resize(self.config.view.width, self.config.view.height)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        self.scenario_bar = ScenarioBar(self.picker)
        self.scenario_bar.run_requested.connect(self.run_scenario)
        layout.addWidget(self.scenario_bar)

        self.splitter = QSplitter(Qt.Orientation.Horizontal)
        self.plot_panel = PlotPanel()
        self.info = QPlainTextEdit()
        self.info.setReadOnly(True)
        self.splitter.addWidget(self.plot_panel)
        self.splitter.addWidget(self.info)
        layout.addWidget(self.splitter)
        self.organize_windows()

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready")

    def _action(self, text: str, slot, shortcut=None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(QKeySequence(shortcut))
            # Shortcuts work while the menu is closed
            action.setShortcutContext(Qt.ShortcutContext.ApplicationShortcut)
            self.addAction(action)
        action.triggered.connect(slot)
        return action

    def setup_menu(self):
        file_menu = self.menuBar().addMenu('File')

        file_menu.addAction(self._action('Zoom In', lambda: self.set_zoom(self.zoom_factor * ZOOM_STEP),
                                         QKeySequence.StandardKey.ZoomIn))
        file_menu.addAction(self._action('Zoom Out', lambda: self.set_zoom(self.zoom_factor / ZOOM_STEP),
                                         QKeySequence.StandardKey.ZoomOut))
        file_menu.addAction(self._action('Reset Zoom', lambda: self.set_zoom(1.0), 'Ctrl+0'))
        self.zoom_label = QAction(self)
        self.zoom_label.setEnabled(False)
        self.zoom_label.setToolTip("The UI zoom level, on top of the operating system's default value")
        file_menu.addAction(self.zoom_label)
        self._update_zoom_label()
        file_menu.addSeparator()

        file_menu.addAction(self._action('Organize Windows', self.organize_windows, 'Ctrl+Shift+O'))
        reset = self._action('Reset View State', self.reset_view_state, 'Ctrl+Shift+R')
        reset.setToolTip("Forget zoom, plots and selection")
        file_menu.addAction(reset)
        file_menu.addSeparator()

        file_menu.addAction(self._action('Load trajectory...', self.load_trajectory_dialog, 'Ctrl+L'))
        file_menu.addAction(self._action('Exit', self.close, 'Ctrl+Q'))

    def _update_zoom_label(self):
        self.zoom_label.setText(f"Current zoom: {100.0 * self.zoom_factor:.0f}%")

    def set_zoom(self, factor: float):
        self.zoom_factor = min(max(factor, MIN_ZOOM), MAX_ZOOM)
        font = QApplication.font()
        font.setPointSizeF(self._base_font_size * self.zoom_factor)
        QApplication.setFont(font)
        self._update_zoom_label()

    def organize_windows(self):
        """Reset the panel layout."""
        width = self.width() or self.config.view.width
        self.splitter.setSizes([int(width * 0.75), int(width * 0.25)])

    def reset_view_state(self):
        """Forget zoom, plots and scenario choice."""
        self.set_zoom(1.0)
        self.scenario_bar.reset()
        self.plot_panel.reset()
        self.info.clear()
        self.organize_windows()
        self.status_bar.showMessage("View state reset")

    @staticmethod
    def _is_running(worker) -> bool:
        return worker is not None and worker.isRunning()

    @staticmethod
    def _release(worker) -> None:
        if worker is not None:
            worker.deleteLater()

    def run_scenario(self):
        if self._is_running(self.scenario_worker):
            return
        self.scenario_bar.set_running(True)
        self.status_bar.showMessage(f"Running {self.picker}...")

        self._release(self.scenario_worker)
        # Owned by the window, so the thread outlives this reference
        self.scenario_worker = ScenarioWorker(self.picker, self.config.physics.settings(), parent=self)
        self.scenario_worker.scenario_finished.connect(self.on_scenario_finished)
        self.scenario_worker.scenario_failed.connect(self.on_scenario_failed)
        self.scenario_worker.start()

    def on_scenario_finished(self, payload):
        result, focus, history = payload
        self.scenario_bar.set_running(False)
        self.plot_panel.show_scenario(result, focus, history)
        self.info.setPlainText("\n".join([result.summary(), "", f"Parameters of {focus.name}"]
                                         + [f"  {line}" for line in self._focus_lines(focus)]))
        self.status_bar.showMessage(f"{result.scenario}: {format_duration(result.duration, 3)} of scene time")

    @staticmethod
    def _focus_lines(trajectory):
        last = trajectory.last()
        return state_summary(trajectory.mu, last.r, last.v, unit="u")

    def load_trajectory_dialog(self):
        path, _ = QFileDialog.getOpenFileName(self, "Load trajectory", "", "Trajectories (*.csv *.json)")
        if path:
            self.load_trajectory(path)

    def load_trajectory(self, path: str):
        if self._is_running(self.load_worker):
            self.status_bar.showMessage(f"Still loading, ignored {path}")
            return
        self.status_bar.showMessage(f"Loading {path}...")

        self._release(self.load_worker)
        self.load_worker = TrajectoryLoadWorker(path, parent=self)
        self.load_worker.trajectory_loaded.connect(self.on_trajectory_loaded)
        self.load_worker.load_failed.connect(self.on_load_failed)
        self.load_worker.start()

    def on_trajectory_loaded(self, payload):
        trajectory, history = payload
        self.plot_panel.show_trajectory(trajectory, history)
        last = trajectory.last()
        self.info.setPlainText("\n".join([repr(trajectory), ""] + list(state_summary(trajectory.mu, last.r, last.v))))
        self.status_bar.showMessage(f"{trajectory.name}: {format_duration(trajectory.duration, 3)}")

    def on_scenario_failed(self, message: str):
        self.scenario_bar.set_running(False)
        self.status_bar.showMessage("Scenario failed")
        self.show_error(message)

    def on_load_failed(self, message: str):
        # A scenario may still be running; leave the scenario bar alone
        self.status_bar.showMessage("Loading failed")
        self.show_error(message)

    def show_error(self, message: str):
        QMessageBox.critical(self, "Error", message)

    def closeEvent(self, event):
        """Wait for background workers before the window is destroyed."""
        for worker in (self.scenario_worker, self.load_worker):
            if self._is_running(worker):
                logger.info("Waiting for %s to finish", type(worker).__name__)
                worker.wait()
        logger.info("Application closing")
        event.accept()


def main(config: Optional[AppConfig] = None, argv=None) -> int:
    """Run the desktop visualizer."""
    app = QApplication(argv if argv is not None else sys.argv)
    app.setApplicationName("trajviz")
    window = MainWindow(config)
    window.show()
    logger.info("Desktop visualizer started")
    return app.exec()
