"""
Unit tests for orbital event search.

Event epochs on a Keplerian trajectory are checked against the analytic
values: periapsis at a(1 - e), apoapsis at a(1 + e), prescribed true
anomalies and radii.
"""

import math

import numpy as np
import pytest

from conftest import LEO
from trajviz.data.events import Direction, Event, StateParameter, find_events
from trajviz.physics.elements import cartesian_to_oe


class TestEventDefinition:

    def test_parse(self):
        assert Event.parse("periapsis").parameter == StateParameter.PERIAPSIS
        assert Event.parse("Apoapsis").parameter == StateParameter.APOAPSIS

        ta = Event.parse("ta:35.1")
        assert ta.parameter == StateParameter.TRUE_ANOMALY
        assert ta.value == 35.1

        assert Event.parse("rmag:7000").value == 7000.0

    def test_parse_errors(self):
        with pytest.raises(ValueError):
            Event.parse("perigee")
        with pytest.raises(ValueError):
            Event.parse("ta:abc")
        with pytest.raises(ValueError):
            Event.parse("ta")

    def test_directions(self):
        assert Event.periapsis().direction == Direction.RISING
        assert Event.apoapsis().direction == Direction.FALLING
        assert Event.true_anomaly(10.0).direction == Direction.RISING
        assert Event.rmag(7000.0).direction == Direction.ANY

    def test_str(self):
        assert str(Event.periapsis()) == "periapsis"
        assert str(Event.rmag(7000.0)) == "rmag = 7000.0 km"

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError):
            Event(StateParameter.PERIAPSIS, tolerance=0.0)


class TestFindEvents:
    """Test event search on two revolutions of a Keplerian orbit."""

    def test_periapsis(self, leo_trajectory):
        states = leo_trajectory.find_all(Event.periapsis())

        assert len(states) == 2
        for state in states:
            np.testing.assert_allclose(state.rmag, LEO.a * (1 - LEO.e), atol=1e-2)
        assert states[0].t < states[1].t

    def test_apoapsis(self, leo_trajectory):
        states = leo_trajectory.find_all(Event.apoapsis())

        assert len(states) == 2
        for state in states:
            np.testing.assert_allclose(state.rmag, LEO.a * (1 + LEO.e), atol=1e-2)

    def test_apsides_are_half_a_period_apart(self, leo_trajectory):
        peri = leo_trajectory.find_all(Event.periapsis())[0]
        apo = [s for s in leo_trajectory.find_all(Event.apoapsis()) if s.t > peri.t][0]
        period = 2 * math.pi * math.sqrt(LEO.a**3 / leo_trajectory.mu)
        np.testing.assert_allclose(apo.t - peri.t, period / 2, atol=0.05)

    def test_true_anomaly(self, leo_trajectory):
        states = leo_trajectory.find_all(Event.true_anomaly(90.0))

        assert len(states) == 2
        for state in states:
            nu = math.degrees(cartesian_to_oe(state.r, state.v, leo_trajectory.mu).nu)
            np.testing.assert_allclose(nu, 90.0, atol=1e-3)

    def test_radius_both_directions(self, leo_trajectory):
        states = leo_trajectory.find_all(Event.rmag(7000.0))

        assert len(states) == 4
        np.testing.assert_allclose([s.rmag for s in states], 7000.0, atol=1e-3)

    def test_event_at_window_start(self, leo_trajectory):
        first = leo_trajectory.evaluate(leo_trajectory.start)
        states = leo_trajectory.find_all(Event.rmag(first.rmag))

        assert states[0].t == leo_trajectory.start
        np.testing.assert_allclose(states[0].rmag, first.rmag)

    def test_rising_event_at_window_start(self, leo_trajectory):
        first = leo_trajectory.evaluate(leo_trajectory.start)
        nu = math.degrees(cartesian_to_oe(first.r, first.v, leo_trajectory.mu).nu)
        states = leo_trajectory.find_all(Event.true_anomaly(nu))

        assert states[0].t == leo_trajectory.start
        assert states[1].t > leo_trajectory.start + 3600.0

    def test_bracketed_window(self, leo_trajectory):
        first = leo_trajectory.find_all(Event.periapsis())[0]
        states = leo_trajectory.find_bracketed(first.t - 100.0, first.t + 100.0, Event.periapsis())

        assert len(states) == 1
        np.testing.assert_allclose(states[0].t, first.t, atol=1e-2)

    def test_no_event_returns_empty(self, leo_trajectory):
        assert leo_trajectory.find_all(Event.rmag(42164.0)) == []

    def test_empty_window(self, leo_trajectory):
        with pytest.raises(ValueError):
            find_events(leo_trajectory, Event.periapsis(), start=100.0, end=100.0)
