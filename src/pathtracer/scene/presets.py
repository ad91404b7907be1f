"""Ready-made scenes.

Components:
    create_random_scene: The classic field of small random spheres around
        three large feature spheres, with its depth-of-field camera
    create_three_spheres_scene: A small deterministic scene (diffuse, glass
        and metal spheres on a ground sphere) for tests and quick previews

Each factory returns a (Scene, CameraConfig) pair. The camera config's
aspect ratio should be replaced to match the output resolution with
CameraConfig.with_aspect_ratio().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.camera.thin_lens import Camera
    >>> from pathtracer.scene.presets import create_random_scene
    >>> scene, camera_config = create_random_scene(seed=7)
    >>> camera = Camera.from_config(camera_config.with_aspect_ratio(16 / 9))
"""

import logging

import numpy as np

from pathtracer.camera.thin_lens import CameraConfig
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Grid of small spheres spans GRID_MIN <= a, b < GRID_MAX
GRID_MIN = -11
GRID_MAX = 11
SMALL_RADIUS = 0.2

# Material thresholds on a uniform draw: below DIFFUSE_THRESHOLD diffuse,
# below METAL_THRESHOLD metal, otherwise glass
DIFFUSE_THRESHOLD = 0.8
METAL_THRESHOLD = 0.95

GLASS_IOR = 1.5


def random_scene_camera(aspect_ratio: float = 16.0 / 9.0) -> CameraConfig:
    """Camera used for the random scene."""
    return CameraConfig(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def create_random_scene(seed: int | None = None) -> tuple[Scene, CameraConfig]:
    """Create the random-spheres scene.

    A large gray ground sphere carries a grid of small spheres with random
    offsets and materials (80% diffuse, 15% metal, 5% glass). Small
    spheres too close to the metal feature sphere are skipped. Three large
    feature spheres sit in the middle: glass, brown diffuse and mirror
    metal.

    Args:
        seed: Seed for the host-side layout generator. The same seed gives
            the same scene; None draws fresh entropy.

    Returns:
        Tuple of (scene, camera_config).
    """
    rng = np.random.default_rng(seed)
    scene = Scene()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5))

    clearance_center = np.array([4.0, SMALL_RADIUS, 0.0])
    for a in range(GRID_MIN, GRID_MAX):
        for b in range(GRID_MIN, GRID_MAX):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()]
            )
            if np.linalg.norm(center - clearance_center) <= 0.9:
                continue

            center_tuple = tuple(center.tolist())
            if choose_mat < DIFFUSE_THRESHOLD:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < METAL_THRESHOLD:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = rng.uniform(0.0, 0.5)
                scene.add_metal_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_dielectric_sphere(center_tuple, SMALL_RADIUS, GLASS_IOR)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_IOR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    logger.info(
        "Random scene: %d spheres, %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, random_scene_camera()


def create_three_spheres_scene() -> tuple[Scene, CameraConfig]:
    """Create a small deterministic scene.

    A diffuse sphere at (0, 0, -1), a glass sphere to its left and a fuzzy
    gold metal sphere to its right, all radius 0.5, on a yellow-green
    ground sphere.

    Returns:
        Tuple of (scene, camera_config) with a pinhole camera at the
        origin looking down -z.
    """
    scene = Scene()
    ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(GLASS_IOR)
    gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    camera_config = CameraConfig(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=16.0 / 9.0,
    )
    return scene, camera_config
