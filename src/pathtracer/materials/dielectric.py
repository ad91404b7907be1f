"""Dielectric (glass/water) material.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) > 1

The surface chooses between reflection and refraction at random, with the
Schlick reflectance as the reflection probability. Clear dielectrics absorb
nothing, so the attenuation is always white.

Example:
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect, refract, schlick_reflectance, unit_vector, vec3
from pathtracer.core.rng import random_f64


def validate_ior(ior: float) -> None:
    """Validate an index of refraction.

    Raises:
        ValueError: If ior is not strictly positive.
    """
    if not ior > 0.0:
        raise ValueError(f"IOR = {ior} must be positive")


@ti.func
def refraction_ratio(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Ratio n_incident / n_transmitted for a ray entering or leaving.

    Entering from outside (front_face == 1) the ray goes from air into the
    material, so the ratio is 1 / ior; leaving, it is ior.
    """
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def will_reflect(cos_theta: ti.f64, ratio: ti.f64, sample: ti.f64) -> ti.i32:
    """Decide whether a dielectric interaction reflects.

    Args:
        cos_theta: Cosine of the incident angle, clamped to at most 1.
        ratio: Refraction ratio n_incident / n_transmitted.
        sample: Uniform random value in [0, 1).

    Returns:
        1 on total internal reflection or when sample falls below the
        Schlick reflectance, 0 when the ray refracts.
    """
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    cannot_refract = ratio * sin_theta > 1.0
    result = 0
    if cannot_refract or sample < schlick_reflectance(cos_theta, ratio):
        result = 1
    return result


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The surface normal, facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within the material.
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state).
        Attenuation is white and did_scatter is always 1.
    """
    ratio = refraction_ratio(ior, front_face)
    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)

    sample, next_state = random_f64(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if will_reflect(cos_theta, ratio, sample):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0), 1, next_state
