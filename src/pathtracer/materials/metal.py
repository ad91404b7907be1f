"""Metal (specular reflective) material with optional fuzz.

The incoming direction is normalized and mirrored about the surface normal:

    R = I - 2(I . N)N

A fuzzy metal then perturbs the reflection by fuzz * random_in_unit_sphere().
If the perturbed direction points below the surface the ray is absorbed.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import random_in_unit_sphere, reflect, unit_vector, vec3
from pathtracer.materials.lambertian import validate_albedo


def validate_metal(albedo: tuple[float, float, float], fuzz: float) -> None:
    """Validate metal parameters.

    Raises:
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is outside [0, 1].
    """
    validate_albedo(albedo)
    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    The random stream is advanced even when fuzz is 0, so the stream
    consumption of a pixel does not depend on material parameters.

    Args:
        albedo: The reflective color (RGB, each in [0, 1]).
        fuzz: Perturbation radius in [0, 1]. 0 is a perfect mirror.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The surface normal, facing the incoming ray.
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state).
        did_scatter is 1 when the scattered direction lies strictly above
        the surface, 0 when the ray is absorbed.
    """
    reflected = reflect(unit_vector(incident_direction), normal)
    perturbation, next_state = random_in_unit_sphere(state)
    scattered_direction = reflected + fuzz * perturbation

    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, albedo, did_scatter, next_state
