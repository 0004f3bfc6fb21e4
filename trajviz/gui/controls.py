"""Scenario picker shown in the top bar of the desktop visualizer."""

import logging
from typing import List, Optional

from ..physics.clock import PhysicsSettings
from ..scenarios import Scenario, ScenarioResult

logger = logging.getLogger(__name__)

class ScenarioPicker:
    """Current scenario of the dropdown and the action of the "run" button."""

    label = "Scenario"
    run_label = "run"

    def __init__(self, scenario: Scenario = Scenario.LUNAR_TRANSFER):
        self.scenario = scenario

    def __str__(self) -> str:
        return str(self.scenario)

    @property
    def options(self) -> List[Scenario]:
        return Scenario.options()

    def choose(self, scenario) -> Scenario:
        """Select a scenario by enum value, display name or index in ``options``."""
        if isinstance(scenario, int):
            scenario = self.options[scenario]
        elif isinstance(scenario, str):
            scenario = Scenario.from_name(scenario)
        if scenario not in self.options:
            raise ValueError(f"{scenario} is not offered by the picker")
        self.scenario = scenario
        return scenario

    def run(self, settings: Optional[PhysicsSettings] = None,
            duration: Optional[float] = None) -> ScenarioResult:
        logger.info("Running scenario %s", self.scenario)
        return self.scenario.run(settings, duration=duration)
