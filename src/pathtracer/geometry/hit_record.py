"""Intersection record shared by every primitive.

A HitRecord carries the nearest intersection of a ray with a surface. The
stored normal always opposes the incoming ray; front_face remembers which
side of the surface was struck. ``make_hit_record`` is the only place that
orientation fix-up happens, so primitives hand it their outward normal and
never flip normals themselves.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal, oriented against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray struck the outward side of the surface,
            0 if it struck from inside. Only valid if hit == 1.
        material_id: The material of the surface that was hit.
            -1 for a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_hit_record(
    ray_direction: vec3,
    t: ti.f64,
    point: vec3,
    outward_normal: vec3,
    material_id: ti.i32,
) -> HitRecord:
    """Build a hit record, orienting the normal against the ray.

    Args:
        ray_direction: Direction of the ray that produced the hit.
        t: Ray parameter of the intersection.
        point: The intersection point.
        outward_normal: The geometric normal pointing out of the surface
            (unit length).
        material_id: Material of the surface.

    Returns:
        A HitRecord with hit == 1.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return HitRecord(
        hit=1,
        t=t,
        point=point,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
