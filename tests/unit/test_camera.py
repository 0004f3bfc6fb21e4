"""Unit tests for the turntable scene camera."""

import math

import numpy as np
import pytest

from trajviz.gui.camera import MAX_PITCH, Camera


class TestCameraBasis:

    def setup_method(self):
        self.camera = Camera()

    def test_default_basis(self):
        np.testing.assert_allclose(self.camera.forward(), [0.0, math.cos(math.radians(30)), -0.5], atol=1e-12)
        np.testing.assert_allclose(self.camera.right(), [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(self.camera.up(), [0.0, 0.5, math.cos(math.radians(30))], atol=1e-12)

    def test_rotation_is_orthonormal(self):
        self.camera.orbit(0.4, -0.2)
        rotation = self.camera.rotation()
        np.testing.assert_allclose(rotation.T @ rotation, np.eye(3), atol=1e-12)

    def test_position_at_distance(self):
        self.camera.target = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(np.linalg.norm(self.camera.position() - self.camera.target), 150.0)

    def test_view_matrix_maps_target_onto_axis(self):
        eye = self.camera.view_matrix() @ np.append(self.camera.target, 1.0)
        np.testing.assert_allclose(eye[:3], [0.0, 0.0, -150.0], atol=1e-9)


class TestCameraControls:

    def setup_method(self):
        self.camera = Camera()

    def test_pitch_is_clamped(self):
        self.camera.orbit(0.0, 10.0)
        assert self.camera.pitch == pytest.approx(MAX_PITCH)
        self.camera.orbit(0.0, -20.0)
        assert self.camera.pitch == pytest.approx(-MAX_PITCH)

    def test_zoom_is_clamped(self):
        self.camera.zoom(0.5)
        assert self.camera.distance == 75.0
        self.camera.zoom(1e6)
        assert self.camera.distance == self.camera.max_distance
        self.camera.zoom(1e-9)
        assert self.camera.distance == self.camera.min_distance

    def test_zoom_rejects_non_positive_factor(self):
        with pytest.raises(ValueError):
            self.camera.zoom(0.0)

    def test_pan_moves_target_in_view_plane(self):
        self.camera.pan(2.0, 0.0)
        np.testing.assert_allclose(self.camera.target, [2.0, 0.0, 0.0], atol=1e-12)

    def test_follow_keeps_minimum_distance(self):
        self.camera.distance = 5.0
        self.camera.follow(np.array([10.0, 0.0, 0.0]), min_camera_distance=24.0)

        np.testing.assert_array_equal(self.camera.target, [10.0, 0.0, 0.0])
        assert self.camera.distance == 24.0

        self.camera.follow(np.zeros(3), min_camera_distance=6.0)
        assert self.camera.distance == 24.0

    def test_copy_is_independent(self):
        copy = self.camera.copy()
        copy.target[0] = 99.0
        assert self.camera.target[0] == 0.0


class TestProjection:

    def setup_method(self):
        self.camera = Camera()
        self.width, self.height = 800, 600

    def test_target_at_viewport_center(self):
        x, y = self.camera.world_to_viewport(self.camera.target, self.width, self.height)
        assert x == pytest.approx(400.0)
        assert y == pytest.approx(300.0)

    def test_screen_axes(self):
        x, y = self.camera.world_to_viewport(self.camera.up() * 10.0 + self.camera.right() * 10.0,
                                             self.width, self.height)
        # Right of center, and above it (pixel y grows downwards)
        assert x > 400.0
        assert y < 300.0

    def test_hidden_points(self):
        behind = self.camera.position() - self.camera.forward() * 10.0
        assert self.camera.world_to_viewport(behind, self.width, self.height) is None

        far_off_side = self.camera.right() * 1000.0
        assert self.camera.world_to_viewport(far_off_side, self.width, self.height) is None

    def test_viewport_ray_through_center(self):
        origin, direction = self.camera.viewport_ray(400.0, 300.0, self.width, self.height)
        np.testing.assert_allclose(origin, self.camera.position())
        np.testing.assert_allclose(direction, self.camera.forward(), atol=1e-12)

    def test_viewport_ray_round_trip(self):
        origin, direction = self.camera.viewport_ray(600.0, 150.0, self.width, self.height)
        x, y = self.camera.world_to_viewport(origin + direction * 150.0, self.width, self.height)
        assert x == pytest.approx(600.0)
        assert y == pytest.approx(150.0)
