"""Lambertian (ideal diffuse) material.

A Lambertian surface scatters toward normal + random_unit_vector(), which
gives a cosine-weighted distribution over the hemisphere around the normal.
With that sampling the cosine and pdf cancel, so the attenuation is simply
the albedo. The surface always scatters.

Example:
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

import taichi as ti

from pathtracer.core.ray import near_zero, random_unit_vector, vec3


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that every albedo component lies in [0, 1].

    Args:
        albedo: The reflectance color as (R, G, B).

    Raises:
        ValueError: If the albedo does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a diffuse scatter direction.

    Args:
        albedo: The diffuse reflectance color (RGB, each in [0, 1]).
        normal: The surface normal at the hit point, facing the incoming ray.
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state):
        - scattered_direction: normal + a random unit vector, or the normal
          itself when that sum degenerates to (nearly) zero. Not normalized.
        - attenuation: The albedo.
        - did_scatter: Always 1.
        - state: The advanced random stream state.
    """
    offset, next_state = random_unit_vector(state)
    scattered_direction = normal + offset

    # Catch degenerate scatter direction
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1, next_state
