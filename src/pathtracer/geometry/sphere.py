"""Sphere primitive with half-b ray-sphere intersection.

The ray-sphere intersection solves

    |origin + t * direction - center|^2 = radius^2

which expands to the quadratic a*t^2 + 2*h*t + c = 0 with

    a = dot(direction, direction)
    h = dot(oc, direction)   (half of the traditional b)
    c = dot(oc, oc) - radius^2
    oc = origin - center

The nearer root is tried first, then the farther one. Only roots strictly
inside the open interval (t_min, t_max) count.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> # Inside a kernel:
    >>> # sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # rec = hit_sphere(ray, sphere, 0.001, 1e30)
"""

import taichi as ti

from pathtracer.core.ray import Ray, dot, ray_at, vec3
from pathtracer.geometry.hit_record import HitRecord, make_hit_record, make_miss_record


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Spheres with radius <= 0 are
            degenerate and never hit.
        material_id: Index into the scene material table.
    """

    center: vec3
    radius: ti.f64
    material_id: ti.i32


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Test for ray-sphere intersection.

    A negative discriminant is a miss. A zero discriminant (tangent ray)
    yields a single double root, which is a hit if it lies in range.

    Args:
        ray: The ray to test. The direction need not be normalized.
        sphere: The sphere to test against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord for the nearest valid root, or a miss record.
    """
    result = make_miss_record()

    oc = ray.origin - sphere.center
    a = dot(ray.direction, ray.direction)
    h = dot(oc, ray.direction)
    c = dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    if sphere.radius > 0.0 and a > 0.0 and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearer root first
        root = (-h - sqrt_d) / a
        valid = t_min < root and root < t_max
        if not valid:
            root = (-h + sqrt_d) / a
            valid = t_min < root and root < t_max

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            result = make_hit_record(
                ray.direction, root, point, outward_normal, sphere.material_id
            )

    return result
