"""Unit tests for the thin-lens camera.

Tests cover:
- CameraConfig validation
- Host-side frame computation
- Primary ray generation with and without defocus
"""

import math

import numpy as np
import pytest


class TestCameraConfig:
    """Tests for CameraConfig validation."""

    def test_defaults_are_valid(self):
        """Test the default configuration validates."""
        from pathtracer.camera import CameraConfig

        CameraConfig().validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"aperture": -0.1},
            {"focus_dist": 0.0},
            {"lookat": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 2.0)},
        ],
    )
    def test_invalid(self, overrides):
        """Test each out-of-range parameter is rejected."""
        from pathtracer.camera import CameraConfig

        with pytest.raises(ValueError):
            CameraConfig(**overrides).validate()

    def test_with_aspect_ratio(self):
        """Test with_aspect_ratio copies the config with a new aspect."""
        from pathtracer.camera import CameraConfig

        config = CameraConfig(vfov=40.0)
        wide = config.with_aspect_ratio(2.0)
        assert wide.aspect_ratio == 2.0
        assert wide.vfov == 40.0
        assert config.aspect_ratio == pytest.approx(16.0 / 9.0)


class TestCameraBasis:
    """Tests for compute_camera_basis."""

    def test_orthonormal_frame(self):
        """Test u, v, w form a right-handed orthonormal frame."""
        from pathtracer.camera import CameraConfig, compute_camera_basis

        basis = compute_camera_basis(
            CameraConfig(lookfrom=(13.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=20.0)
        )
        u, v, w = basis["u"], basis["v"], basis["w"]
        for axis in (u, v, w):
            assert abs(np.linalg.norm(axis) - 1.0) < 1e-12
        assert abs(np.dot(u, v)) < 1e-12
        assert abs(np.dot(v, w)) < 1e-12
        np.testing.assert_allclose(np.cross(u, v), w, atol=1e-12)

    def test_viewport_size(self):
        """Test the viewport spans 2 tan(vfov/2) vertically at the focus distance."""
        from pathtracer.camera import CameraConfig, compute_camera_basis

        basis = compute_camera_basis(
            CameraConfig(vfov=60.0, aspect_ratio=1.5, focus_dist=2.0)
        )
        height = 2.0 * math.tan(math.radians(30.0)) * 2.0
        assert abs(np.linalg.norm(basis["vertical"]) - height) < 1e-12
        assert abs(np.linalg.norm(basis["horizontal"]) - 1.5 * height) < 1e-12


class TestCameraRays:
    """Tests for Camera.get_ray."""

    def test_center_ray(self):
        """Test the image center looks straight down -z."""
        from pathtracer.camera import Camera

        camera = Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 2.0)
        origin, direction = camera.get_ray(0.5, 0.5)
        np.testing.assert_allclose(origin, [0.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(direction, [0.0, 0.0, -1.0], atol=1e-12)

    def test_corner_ray(self):
        """Test (0, 0) is the lower-left corner of the viewport."""
        from pathtracer.camera import Camera

        camera = Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 2.0)
        _, direction = camera.get_ray(0.0, 0.0)
        np.testing.assert_allclose(direction, [-2.0, -1.0, -1.0], atol=1e-12)

    def test_pinhole_is_deterministic(self):
        """Test a zero aperture ignores the random stream."""
        from pathtracer.camera import Camera

        camera = Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 1.0)
        first = camera.get_ray(0.3, 0.7, seed=1)
        second = camera.get_ray(0.3, 0.7, seed=2)
        np.testing.assert_array_equal(first[0], second[0])
        np.testing.assert_array_equal(first[1], second[1])

    def test_defocus_origin_on_lens(self):
        """Test lens samples stay within the aperture and aim at the focus plane."""
        from pathtracer.camera import Camera

        camera = Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 1.0, aperture=0.5, focus_dist=3.0)
        origins = []
        for seed in range(1, 16):
            origin, direction = camera.get_ray(0.5, 0.5, seed=seed)
            origins.append(origin)
            assert abs(origin[2]) < 1e-12
            assert np.linalg.norm(origin) < 0.25
            # Every ray passes through the in-focus point (0, 0, -3)
            np.testing.assert_allclose(origin + direction, [0.0, 0.0, -3.0], atol=1e-12)
        assert len({tuple(o) for o in origins}) > 1

    def test_camera_info(self):
        """Test get_camera_info reports the frame as tuples."""
        from pathtracer.camera import Camera, CameraConfig

        camera = Camera.from_config(CameraConfig(aperture=0.2))
        info = camera.get_camera_info()
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0))
        assert info["lens_radius"] == pytest.approx(0.1)
        assert camera.aspect_ratio == pytest.approx(16.0 / 9.0)
