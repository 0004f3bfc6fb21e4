"""Unit tests for Monte Carlo ensemble dispersion."""

import numpy as np
import pytest

from trajviz.data.ensemble import TrajectoryEnsemble, rsw_frame
from trajviz.data.trajectory import Trajectory


class TestRSWFrame:

    def test_aligned_with_axes(self):
        rotation = rsw_frame(np.array([7000.0, 0.0, 0.0]), np.array([0.0, 7.5, 0.0]))
        np.testing.assert_allclose(rotation, np.eye(3), atol=1e-15)

    def test_orthonormal(self):
        rotation = rsw_frame(np.array([5946.7, 1656.2, 2259.0]), np.array([-3.1, 4.6, 6.2]))
        np.testing.assert_allclose(rotation @ rotation.T, np.eye(3), atol=1e-12)

    def test_rectilinear_motion(self):
        with pytest.raises(ValueError):
            rsw_frame(np.array([7000.0, 0.0, 0.0]), np.array([1.0, 0.0, 0.0]))


class TestTrajectoryEnsemble:
    """Test alignment and dispersion statistics."""

    def setup_method(self):
        self.epochs = np.arange(0.0, 601.0, 60.0)
        self.states = np.zeros((len(self.epochs), 6))
        self.states[:, 0] = 7000.0
        self.states[:, 4] = 7.5
        self.nominal = Trajectory(self.epochs, self.states, name="nominal")

    def test_identical_runs_have_no_dispersion(self):
        ensemble = TrajectoryEnsemble([self.nominal, self.nominal, self.nominal])
        table = ensemble.dispersion(step=120.0)

        assert len(table) == 6
        assert (table['n_runs'] == 3).all()
        np.testing.assert_allclose(table['p95_dev_km'], 0.0, atol=1e-9)
        np.testing.assert_allclose(table['radial_std_km'], 0.0, atol=1e-9)

    def test_dispersion_against_nominal(self):
        offset = np.array([3.0, 0.0, 4.0, 0.0, 0.0, 0.0])
        shifted = Trajectory(self.epochs, self.states + offset, name="run-1")
        table = TrajectoryEnsemble([self.nominal, shifted], nominal=0).dispersion(step=300.0)

        np.testing.assert_allclose(table['epoch'], [0.0, 300.0, 600.0])
        np.testing.assert_allclose(table['mean_dev_km'], 2.5)
        np.testing.assert_allclose(table['p95_dev_km'], 0.95 * 5.0)
        # Radial is along x, cross-track along z
        np.testing.assert_allclose(table['radial_std_km'], 1.5)
        np.testing.assert_allclose(table['in_track_std_km'], 0.0, atol=1e-9)
        np.testing.assert_allclose(table['cross_track_std_km'], 2.0)

    def test_common_window(self):
        later = Trajectory(self.epochs + 300.0, self.states, name="later")
        ensemble = TrajectoryEnsemble([self.nominal, later])

        assert ensemble.common_window() == (300.0, 600.0)
        np.testing.assert_allclose(ensemble.common_epochs(200.0), [300.0, 500.0, 600.0])

    def test_no_common_window(self):
        disjoint = Trajectory(self.epochs + 1000.0, self.states, name="disjoint")
        with pytest.raises(ValueError):
            TrajectoryEnsemble([self.nominal, disjoint]).common_window()

    def test_validation(self):
        with pytest.raises(ValueError):
            TrajectoryEnsemble([])
        with pytest.raises(ValueError):
            TrajectoryEnsemble([self.nominal], nominal=1)
        other = Trajectory(self.epochs, self.states, frame="ECEF")
        with pytest.raises(ValueError):
            TrajectoryEnsemble([self.nominal, other])
        with pytest.raises(ValueError):
            TrajectoryEnsemble([self.nominal]).common_epochs(0.0)
