"""
Unit tests for the built-in scenarios.

Runs are kept to one second of scene time to stay fast.
"""

import numpy as np
import pytest

from trajviz.physics.clock import PhysicsSettings
from trajviz.scenarios import Scenario, star_system


class TestScenarioDefinitions:

    def test_options_and_names(self):
        assert Scenario.options() == [Scenario.LUNAR_TRANSFER, Scenario.ORBIT_DESIGN]
        assert str(Scenario.LUNAR_TRANSFER) == "Lunar Transfer"

    @pytest.mark.parametrize("name", ["Lunar Transfer", "LUNAR_TRANSFER", "lunar-transfer", " lunar transfer "])
    def test_from_name(self, name):
        assert Scenario.from_name(name) == Scenario.LUNAR_TRANSFER

    def test_from_unknown_name(self):
        with pytest.raises(ValueError):
            Scenario.from_name("Mars Landing")

    def test_bodies(self):
        lunar = [b.name for b in Scenario.LUNAR_TRANSFER.bodies()]
        design = [b.name for b in Scenario.ORBIT_DESIGN.bodies()]

        assert lunar == ["Sun", "Earth", "Luna"]
        assert design == ["Star", "Planet", "Moon", "Comet"]

    def test_view_defaults(self):
        assert Scenario.LUNAR_TRANSFER.selected == "Sun"
        assert Scenario.LUNAR_TRANSFER.followed == "Earth"
        assert Scenario.ORBIT_DESIGN.followed == "Star"

    def test_star_system(self):
        star, planet, moon = star_system(comet=None)

        assert star.is_light_source
        assert planet.mu == 100.0 and moon.mu == 1.0
        # The planet circles the star at a distance of 60
        speed = np.linalg.norm(planet.velocity - star.velocity)
        np.testing.assert_allclose(speed, np.sqrt(5100.0 / 60.0))

    def test_draws(self):
        draws = Scenario.ORBIT_DESIGN.draws()

        assert draws["Star"].steps == 0
        assert draws["Planet"].reference == "Star"
        assert draws["Moon"].reference == "Planet"
        assert draws["Comet"].reference is None


class TestScenarioRun:
    """Test scenario runs and derived trajectories."""

    def setup_method(self):
        self.settings = PhysicsSettings()
        self.lunar = Scenario.LUNAR_TRANSFER.run(self.settings, duration=1.0, prediction_steps=10)
        self.design = Scenario.ORBIT_DESIGN.run(self.settings, duration=1.0, prediction_steps=10)

    def test_trajectories(self):
        assert set(self.lunar.trajectories) == {"Sun", "Earth", "Luna"}
        earth = self.lunar.trajectories["Earth"]

        assert len(earth) == 61
        assert earth.frame == "scene"
        np.testing.assert_allclose(earth.duration, 1.0)
        np.testing.assert_allclose(self.lunar.duration, 1.0)

    def test_predictions(self):
        assert set(self.lunar.predictions) == {"Earth", "Luna"}
        assert set(self.design.predictions) == {"Planet", "Moon", "Comet"}
        for path in self.design.predictions.values():
            assert path.shape == (11, 3)

    def test_prediction_starts_at_initial_position(self):
        np.testing.assert_allclose(self.design.predictions["Comet"][0], [-200.0, 138.0, -18.0])

    def test_relative_trajectory(self):
        luna = self.lunar.relative_trajectory("Luna")

        assert luna.name == "Luna wrt Earth"
        assert luna.frame == "Earth"
        assert luna.mu == 101.0
        np.testing.assert_allclose(luna.first().rmag, 4.5)

    def test_relative_trajectory_without_reference(self):
        with pytest.raises(ValueError):
            self.lunar.relative_trajectory("Sun")

    def test_focus_trajectory(self):
        assert self.lunar.focus_trajectory().name == "Earth wrt Sun"
        # The star is followed in Orbit Design but has no reference
        assert self.design.focus_trajectory().name == "Planet wrt Star"

    def test_body_lookup(self):
        assert self.design.body("Comet").mu == 0.0
        with pytest.raises(KeyError):
            self.design.body("Pluto")

    def test_summary(self):
        summary = self.lunar.summary()
        assert summary.startswith("Lunar Transfer: Sun (mu=5000")
        assert summary.endswith("of scene time")

    def test_invalid_duration(self):
        with pytest.raises(ValueError):
            Scenario.ORBIT_DESIGN.run(self.settings, duration=0.0)

    def test_default_prediction_length(self):
        result = Scenario.ORBIT_DESIGN.run(self.settings, duration=1.0)
        # Five minutes of scene time at 60 steps per second
        for path in result.predictions.values():
            assert path.shape == (18001, 3)
