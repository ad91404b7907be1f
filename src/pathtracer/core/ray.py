"""Ray data structure and double-precision vector utilities.

This module provides the Ray dataclass and the vector algebra used by every
other part of the renderer. All functions are Taichi functions (@ti.func)
and run inside kernels. Random sampling helpers take an explicit stream
state (see pathtracer.core.rng) and return the advanced state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point_along() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)  # (0, 0, -5)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_f64

# Double-precision 3D vector type used throughout the renderer
vec3 = ti.types.vector(3, ti.f64)

# Components below this magnitude count as zero
NEAR_ZERO_EPSILON = 1e-8

# Upper bound on rejection-sampling rounds (each round succeeds with p >= 0.52)
MAX_REJECTION_ATTEMPTS = 64


@ti.dataclass
class Ray:
    """A parametric line origin + t * direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to
            be unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Algebra
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f64:
    """Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Cross product a x b."""
    return tm.cross(a, b)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The caller guarantees v is not the zero vector. Use safe_unit_vector
    wherever the input can degenerate.
    """
    return v / tm.length(v)


@ti.func
def safe_unit_vector(v: vec3):
    """Scale a vector to unit length, reporting zero-length input.

    Args:
        v: The input vector.

    Returns:
        A tuple (unit, ok). For a zero-length input, unit is the zero
        vector and ok is 0; otherwise ok is 1.
    """
    len_sq = tm.dot(v, v)
    unit = vec3(0.0, 0.0, 0.0)
    ok = 0
    if len_sq > 0.0:
        unit = v / ti.sqrt(len_sq)
        ok = 1
    return unit, ok


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if every component of a vector is below NEAR_ZERO_EPSILON.

    Returns:
        1 if the vector is near zero in all components, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror v about the normal n: v - 2 (v . n) n.

    The normal should be unit length. Applying reflect twice with the same
    normal returns the original vector.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, ratio: ti.f64) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The result is split into the component perpendicular to the normal and
    the component parallel to it.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal facing the incoming ray (unit length).
        ratio: Ratio of refractive indices n_incident / n_transmitted.

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = ratio * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ratio: ti.f64) -> ti.f64:
    """Schlick's polynomial approximation of Fresnel reflectance.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        ratio: Ratio of refractive indices.

    Returns:
        The approximate reflectance in [0, 1].
    """
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling
# =============================================================================


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly inside the unit sphere.

    Rejection sampling: draw in the cube [-1, 1)^3 and retry while the
    squared length is >= 1.

    Returns:
        A tuple (point, state).
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _attempt in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s = random_f64(s)
            y, s = random_f64(s)
            z, s = random_f64(s)
            candidate = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 2.0 * z - 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a unit vector uniformly distributed on the sphere.

    Returns:
        A tuple (direction, state). The direction is the zero vector only
        if rejection sampling produced the exact origin.
    """
    p, s = random_in_unit_sphere(state)
    unit, _ = safe_unit_vector(p)
    return unit, s


@ti.func
def random_in_hemisphere(normal: vec3, state: ti.u32):
    """Draw a point in the unit sphere, flipped into the normal's hemisphere.

    Returns:
        A tuple (point, state) with dot(point, normal) >= 0.
    """
    p, s = random_in_unit_sphere(state)
    result = p
    if tm.dot(p, normal) < 0.0:
        result = -p
    return result, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly inside the unit disk in the xy-plane.

    Used to jitter ray origins over the camera lens.

    Returns:
        A tuple (point, state) where point is (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _attempt in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s = random_f64(s)
            y, s = random_f64(s)
            candidate = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 0.0)
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p, s
