"""Path tracing integrator for Monte Carlo light transport.

A camera ray bounces through the scene until it escapes to the sky, is
absorbed by a surface, or exhausts its bounce budget. Each scatter
multiplies the path throughput by the material attenuation; an escaped ray
contributes throughput * background. Exhausting the budget contributes
black.

The integrator is an explicit loop carrying the throughput product rather
than a recursion, so its stack use is independent of max_depth.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.integrator import ray_color
    >>> from pathtracer.scene.manager import Scene
    >>> ray_color(Scene(), origin=(0, 0, 0), direction=(0, -1, 0), max_depth=5)
    (1.0, 1.0, 1.0)
"""

import taichi as ti

from pathtracer.core.ray import Ray, make_ray, safe_unit_vector, vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Intersection interval; T_MIN keeps scattered rays off their own surface
T_MIN = 1e-3
T_MAX = 1e30


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a direction that escapes the scene.

    Blends from white at y = -1 to light blue at y = +1 of the unit
    direction.
    """
    unit_direction, _ = safe_unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * vec3(0.5, 0.7, 1.0)


@ti.func
def trace_path(scene: ti.template(), ray: Ray, max_depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        scene: The Scene to trace against.
        ray: The primary ray.
        max_depth: Maximum number of scene intersections along the path.
            0 returns black.
        state: Random stream state.

    Returns:
        A tuple (radiance, state).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    s = state

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _depth in range(max_depth):
        if active == 1:
            _, ok = safe_unit_vector(current.direction)
            if ok == 0:
                # Degenerate direction carries no light
                active = 0
            else:
                rec = scene.hit(current, T_MIN, T_MAX)
                if rec.hit == 0:
                    radiance = throughput * background(current.direction)
                    active = 0
                else:
                    direction, attenuation, did_scatter, s = scene.scatter(current, rec, s)
                    if did_scatter == 0:
                        active = 0
                    else:
                        throughput *= attenuation
                        current = make_ray(rec.point, direction)

    return radiance, s


# =============================================================================
# Host Helpers
# =============================================================================


@ti.kernel
def _ray_color_kernel(
    scene: ti.template(),
    origin: vec3,
    direction: vec3,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    radiance, _ = trace_path(scene, make_ray(origin, direction), max_depth, seed)
    return radiance


def ray_color(
    scene,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray from Python.

    Intended for testing and debugging. For images use
    pathtracer.core.render.render().

    Args:
        scene: The Scene to trace against.
        origin: Ray origin.
        direction: Ray direction (need not be normalized).
        max_depth: Bounce budget (>= 0).
        seed: Random stream state for the path.

    Returns:
        The (R, G, B) radiance estimate.

    Raises:
        ValueError: If max_depth is negative.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    color = _ray_color_kernel(scene, vec3(*origin), vec3(*direction), max_depth, seed)
    return (float(color[0]), float(color[1]), float(color[2]))
