"""
Orbital element utilities for trajectory display.

This module provides:
- Classical orbital elements <-> Cartesian state conversion
- Two-body invariants (energy, angular momentum, eccentricity vector)
- Derived quantities shown in the visualizers (period, apsides)
- A text summary of a state for HUD and status displays
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..infra.utils import format_duration

# Physical constants (km, s)
MU_EARTH = 398600.4415     # km^3/s^2
MU_MOON = 4902.800066      # km^3/s^2
MU_SUN = 1.32712440018e11  # km^3/s^2
R_EARTH = 6378.1363        # km

# Below this the orbit is treated as circular / equatorial
_SINGULAR_TOL = 1e-11

@dataclass
class OrbitalElements:
    """Classical orbital elements."""
    a: float          # Semi-major axis (km)
    e: float          # Eccentricity
    i: float          # Inclination (rad)
    raan: float       # Right ascension of ascending node (rad)
    w: float          # Argument of periapsis (rad)
    nu: float         # True anomaly (rad)
    epoch: float = 0.0  # Epoch time (s)

    def degrees(self) -> dict:
        """Angles in degrees, as shown to the user."""
        return {
            'sma': self.a,
            'ecc': self.e,
            'inc': math.degrees(self.i),
            'raan': math.degrees(self.raan),
            'aop': math.degrees(self.w),
            'ta': math.degrees(self.nu),
        }

def _wrap(angle: float) -> float:
    return angle % (2 * math.pi)

def oe_to_cartesian(oe: OrbitalElements, mu: float = MU_EARTH) -> Tuple[np.ndarray, np.ndarray]:
    """Convert orbital elements to Cartesian state vectors."""
    a, e, i, raan, w, nu = oe.a, oe.e, oe.i, oe.raan, oe.w, oe.nu

    if mu <= 0:
        raise ValueError(f"mu must be positive, got {mu}")

    # Orbital parameter
    p = a * (1 - e**2)
    if p <= 0:
        raise ValueError(f"Semi-latus rectum must be positive (a={a}, e={e})")

    # Position and velocity in orbital plane
    r_mag = p / (1 + e * np.cos(nu))

    r_pqw = np.array([
        r_mag * np.cos(nu),
        r_mag * np.sin(nu),
        0.0
    ])

    v_pqw = np.sqrt(mu / p) * np.array([
        -np.sin(nu),
        e + np.cos(nu),
        0.0
    ])

    # Rotation from perifocal to inertial frame
    cos_raan, sin_raan = np.cos(raan), np.sin(raan)
    cos_i, sin_i = np.cos(i), np.sin(i)
    cos_w, sin_w = np.cos(w), np.sin(w)

    R = np.array([
        [cos_raan*cos_w - sin_raan*sin_w*cos_i, -cos_raan*sin_w - sin_raan*cos_w*cos_i, sin_raan*sin_i],
        [sin_raan*cos_w + cos_raan*sin_w*cos_i, -sin_raan*sin_w + cos_raan*cos_w*cos_i, -cos_raan*sin_i],
        [sin_w*sin_i, cos_w*sin_i, cos_i]
    ])

    return R @ r_pqw, R @ v_pqw

def cartesian_to_oe(r: np.ndarray,
                    v: np.ndarray,
                    mu: float = MU_EARTH,
                    epoch: float = 0.0) -> OrbitalElements:
    """
    Convert a Cartesian state to classical orbital elements.

    Circular orbits get a zero argument of periapsis and an anomaly measured
    from the ascending node. Equatorial orbits get a zero RAAN and angles
    measured from the x axis.

    Args:
        r: Position vector (km)
        v: Velocity vector (km/s)
        mu: Gravitational parameter (km^3/s^2)
        epoch: Epoch carried into the result

    Returns:
        Orbital elements, angles wrapped to [0, 2pi)
    """
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    r_mag = np.linalg.norm(r)
    if r_mag == 0:
        raise ValueError("Position vector must be non-zero")

    h = np.cross(r, v)
    h_mag = np.linalg.norm(h)
    if h_mag == 0:
        raise ValueError("Rectilinear state has no orbital plane")
    h_hat = h / h_mag

    n = np.array([-h[1], h[0], 0.0])
    n_mag = np.linalg.norm(n)

    e_vec = eccentricity_vector(mu, r, v)
    e = float(np.linalg.norm(e_vec))

    energy = specific_energy(mu, r, v)
    a = -mu / (2.0 * energy) if energy != 0 else math.inf

    i = math.acos(np.clip(h[2] / h_mag, -1.0, 1.0))

    equatorial = n_mag / h_mag < _SINGULAR_TOL
    circular = e < _SINGULAR_TOL

    if equatorial:
        raan = 0.0
        n_hat = np.array([1.0, 0.0, 0.0])
    else:
        n_hat = n / n_mag
        raan = math.atan2(n[1], n[0])

    if circular:
        w = 0.0
        nu = math.atan2(np.dot(h_hat, np.cross(n_hat, r)), np.dot(n_hat, r))
    else:
        w = math.atan2(np.dot(h_hat, np.cross(n_hat, e_vec)), np.dot(n_hat, e_vec))
        nu = math.atan2(np.dot(h_hat, np.cross(e_vec, r)), np.dot(e_vec, r))

    return OrbitalElements(a=a, e=e, i=i, raan=_wrap(raan), w=_wrap(w), nu=_wrap(nu), epoch=epoch)

def specific_energy(mu: float, r: np.ndarray, v: np.ndarray) -> float:
    """Specific orbital energy (km^2/s^2)."""
    distance = np.linalg.norm(r)
    if distance == 0:
        return float("inf")
    return float(0.5 * np.dot(v, v) - mu / distance)

def angular_momentum(r: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Specific angular momentum vector."""
    return np.cross(r, v)

def eccentricity_vector(mu: float, r: np.ndarray, v: np.ndarray) -> np.ndarray:
    distance = np.linalg.norm(r)
    if distance == 0:
        return np.zeros(3)
    return ((np.dot(v, v) - mu / distance) * r - np.dot(r, v) * v) / mu

def semi_major_axis(mu: float, r: np.ndarray, v: np.ndarray) -> Optional[float]:
    energy = specific_energy(mu, r, v)
    if energy >= 0:
        return None
    return -mu / (2.0 * energy)

def orbital_period(mu: float, r: np.ndarray, v: np.ndarray) -> Optional[float]:
    a = semi_major_axis(mu, r, v)
    if a is None:
        return None
    return 2.0 * math.pi * math.sqrt(a**3 / mu)

def periapsis_radius(mu: float, r: np.ndarray, v: np.ndarray) -> float:
    """Periapsis radius, also defined for hyperbolic orbits."""
    h = np.linalg.norm(angular_momentum(r, v))
    e = np.linalg.norm(eccentricity_vector(mu, r, v))
    return float(h**2 / mu / (1.0 + e))

def apoapsis_radius(mu: float, r: np.ndarray, v: np.ndarray) -> Optional[float]:
    e = np.linalg.norm(eccentricity_vector(mu, r, v))
    a = semi_major_axis(mu, r, v)
    if a is None or e >= 1.0:
        return None
    return float(a * (1.0 + e))

def true_anomaly(mu: float, r: np.ndarray, v: np.ndarray) -> float:
    """True anomaly in radians, [0, 2pi)."""
    return cartesian_to_oe(r, v, mu).nu

def state_summary(mu: float, r: np.ndarray, v: np.ndarray, unit: str = "km") -> Tuple[str, ...]:
    """Human-readable lines describing a state around a central body.

    ``unit`` names the distance unit; the preview scene passes its own.
    """
    distance = float(np.linalg.norm(r))
    speed = float(np.linalg.norm(v))
    energy = specific_energy(mu, r, v)
    e = float(np.linalg.norm(eccentricity_vector(mu, r, v)))
    h = angular_momentum(r, v)
    h_mag = np.linalg.norm(h)
    period = orbital_period(mu, r, v)
    per = periapsis_radius(mu, r, v) if h_mag > 0 else None
    apo = apoapsis_radius(mu, r, v)

    lines = [
        f"Distance: {distance:,.3f} {unit}",
        f"Speed: {speed:,.4f} {unit}/s",
        f"Specific energy: {energy:,.4f} {unit}^2/s^2",
        f"Eccentricity: {e:.6f}",
    ]
    if h_mag > 0:
        lines.append(f"Inclination: {math.degrees(math.acos(np.clip(h[2] / h_mag, -1, 1))):.4f} deg")
    else:
        lines.append("Inclination: n/a")
    lines.append(f"Period: {format_duration(period, 3)}" if period is not None else "Period: n/a")
    lines.append(f"Periapsis: {per:,.3f} {unit}" if per is not None else "Periapsis: n/a")
    lines.append(f"Apoapsis: {apo:,.3f} {unit}" if apo is not None else "Apoapsis: n/a")
    return tuple(lines)
