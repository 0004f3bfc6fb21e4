"""
Unit tests for orbital element conversions.

This module tests:
- Cartesian -> elements against a reference state
- Elements -> Cartesian -> elements consistency
- Circular, equatorial and unbound orbits
- State summaries
"""

import math

import numpy as np
import pytest

from trajviz.physics.elements import (
    MU_EARTH,
    OrbitalElements,
    apoapsis_radius,
    cartesian_to_oe,
    oe_to_cartesian,
    orbital_period,
    periapsis_radius,
    semi_major_axis,
    specific_energy,
    state_summary,
)

REFERENCE_R = np.array([5946.673548288958, 1656.154606023661, 2259.012129598249])
REFERENCE_V = np.array([-3.098683050943824, 4.579534132135011, 6.246541551539432])


class TestCartesianToElements:
    """Test state vector to orbital element conversion."""

    def test_reference_state(self):
        oe = cartesian_to_oe(REFERENCE_R, REFERENCE_V, MU_EARTH).degrees()

        np.testing.assert_allclose(oe['sma'], 7712.186117895041, rtol=1e-9)
        np.testing.assert_allclose(oe['ecc'], 0.159, atol=1e-9)
        np.testing.assert_allclose(oe['inc'], 53.75369, atol=1e-6)
        np.testing.assert_allclose(oe['raan'], 1.99863286421117e-5, atol=1e-6)
        np.testing.assert_allclose(oe['aop'], 359.787880000004, atol=1e-6)
        np.testing.assert_allclose(oe['ta'], 25.434003407751188, atol=1e-6)

    def test_round_trip_through_cartesian(self):
        oe = OrbitalElements(a=26560.0, e=0.3, i=math.radians(55.0), raan=1.2, w=2.5, nu=4.0)
        r, v = oe_to_cartesian(oe)
        back = cartesian_to_oe(r, v)

        np.testing.assert_allclose(
            [back.a, back.e, back.i, back.raan, back.w, back.nu],
            [oe.a, oe.e, oe.i, oe.raan, oe.w, oe.nu],
            rtol=1e-9,
        )

    def test_circular_equatorial_orbit(self):
        r = np.array([0.0, 7000.0, 0.0])
        v = np.array([-math.sqrt(MU_EARTH / 7000.0), 0.0, 0.0])
        oe = cartesian_to_oe(r, v)

        assert oe.e < 1e-12
        assert oe.raan == 0.0
        assert oe.w == 0.0
        # Anomaly measured from the x axis
        np.testing.assert_allclose(oe.nu, math.pi / 2, atol=1e-12)

    def test_angles_are_wrapped(self):
        oe = OrbitalElements(a=8000.0, e=0.1, i=0.5, raan=-0.5, w=-1.0, nu=-0.25)
        back = cartesian_to_oe(*oe_to_cartesian(oe))
        for angle in (back.raan, back.w, back.nu):
            assert 0.0 <= angle < 2 * math.pi


class TestOrbitQuantities:
    """Test derived orbital quantities."""

    def setup_method(self):
        self.oe = OrbitalElements(a=7000.0, e=0.1, i=0.3, raan=0.0, w=0.0, nu=0.7)
        self.r, self.v = oe_to_cartesian(self.oe)

    def test_energy_and_semi_major_axis(self):
        np.testing.assert_allclose(specific_energy(MU_EARTH, self.r, self.v), -MU_EARTH / (2 * 7000.0))
        np.testing.assert_allclose(semi_major_axis(MU_EARTH, self.r, self.v), 7000.0)

    def test_apsides(self):
        np.testing.assert_allclose(periapsis_radius(MU_EARTH, self.r, self.v), 6300.0)
        np.testing.assert_allclose(apoapsis_radius(MU_EARTH, self.r, self.v), 7700.0)

    def test_period(self):
        expected = 2 * math.pi * math.sqrt(7000.0**3 / MU_EARTH)
        np.testing.assert_allclose(orbital_period(MU_EARTH, self.r, self.v), expected)

    def test_unbound_orbit(self):
        r = np.array([7000.0, 0.0, 0.0])
        v = np.array([0.0, 12.0, 0.0])  # above escape speed

        assert semi_major_axis(MU_EARTH, r, v) is None
        assert orbital_period(MU_EARTH, r, v) is None
        assert apoapsis_radius(MU_EARTH, r, v) is None
        assert periapsis_radius(MU_EARTH, r, v) == pytest.approx(7000.0)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            oe_to_cartesian(self.oe, mu=0.0)
        with pytest.raises(ValueError):
            oe_to_cartesian(OrbitalElements(a=7000.0, e=1.5, i=0, raan=0, w=0, nu=0))


class TestStateSummary:
    """Test human-readable state summaries."""

    def test_bound_orbit(self):
        lines = state_summary(MU_EARTH, REFERENCE_R, REFERENCE_V)

        assert lines[0].startswith("Distance: ")
        assert any(line.startswith("Eccentricity: 0.159") for line in lines)
        assert any(line.startswith("Inclination: 53.7537") for line in lines)
        assert not any("n/a" in line for line in lines)

    def test_unbound_orbit_placeholders(self):
        lines = state_summary(MU_EARTH, np.array([7000.0, 0.0, 0.0]), np.array([0.0, 12.0, 0.0]))

        assert "Period: n/a" in lines
        assert "Apoapsis: n/a" in lines

    def test_custom_unit(self):
        lines = state_summary(5100.0, np.array([60.0, 0.0, 0.0]), np.array([0.0, 9.0, 0.0]), unit="u")
        assert lines[0] == "Distance: 60.000 u"
