"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def taichi_init():
    """Initialize Taichi once per test session, in double precision."""
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture
def empty_scene():
    """A scene with no primitives (every ray sees the sky)."""
    from pathtracer.scene import Scene

    return Scene(max_spheres=8, max_triangles=8, max_materials=8)


@pytest.fixture
def three_spheres():
    """The small three-spheres scene and a camera for it."""
    from pathtracer.camera import Camera
    from pathtracer.scene import create_three_spheres_scene

    scene, config = create_three_spheres_scene()
    return scene, Camera.from_config(config)


@pytest.fixture
def gradient_image():
    """A small (H, W, 3) linear image with known values."""
    image = np.zeros((2, 3, 3), dtype=np.float64)
    image[0, 0] = (0.25, 0.5, 1.0)
    image[0, 1] = (-0.5, 2.0, 0.0)
    image[1, 2] = (0.04, 0.09, 0.16)
    return image
