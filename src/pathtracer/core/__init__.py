"""Core rendering module.

Components:
    rng: Explicit per-task random streams
    ray: Ray data structure, vector algebra and sampling helpers
    integrator: Iterative path-tracing light transport
    render: Data-parallel per-pixel sampling driver
    progressive: Accumulating renderer for interactive previews

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    safe_unit_vector,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .rng import pcg_hash, pixel_seed, random_f64, random_range

# integrator, render and progressive depend on the scene package and are
# imported directly from their modules.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "safe_unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
    "pcg_hash",
    "pixel_seed",
    "random_f64",
    "random_range",
]
