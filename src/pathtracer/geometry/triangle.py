"""Triangle primitive using the Moller-Trumbore intersection test.

The test solves origin + t*d = a + u*(b - a) + v*(c - a) for the
barycentric coordinates (u, v) and the ray parameter t without building
the triangle's plane explicitly. Near-parallel rays (|det| < EPSILON) and
zero-area triangles never hit.

The surface normal is flat: cross(b - a, c - a), normalized, then oriented
against the incoming ray like every other primitive.
"""

import taichi as ti

from pathtracer.core.ray import Ray, cross, dot, ray_at, safe_unit_vector, vec3
from pathtracer.geometry.hit_record import HitRecord, make_hit_record, make_miss_record

# Tolerance for the determinant, barycentric bounds and minimum t
EPSILON = 1e-7


@ti.dataclass
class Triangle:
    """A triangle defined by three vertices.

    Attributes:
        a: First vertex (vec3).
        b: Second vertex (vec3).
        c: Third vertex (vec3).
        material_id: Index into the scene material table.
    """

    a: vec3
    b: vec3
    c: vec3
    material_id: ti.i32


@ti.func
def hit_triangle(ray: Ray, triangle: Triangle, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Test for ray-triangle intersection.

    Args:
        ray: The ray to test.
        triangle: The triangle to test against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord for the intersection, or a miss record.
    """
    result = make_miss_record()

    edge1 = triangle.b - triangle.a
    edge2 = triangle.c - triangle.a
    h = cross(ray.direction, edge2)
    det = dot(edge1, h)

    if ti.abs(det) >= EPSILON:
        inv_det = 1.0 / det
        s = ray.origin - triangle.a
        u = inv_det * dot(s, h)

        if u >= -EPSILON and u <= 1.0 + EPSILON:
            q = cross(s, edge1)
            v = inv_det * dot(ray.direction, q)

            if v >= -EPSILON and u + v <= 1.0:
                t = inv_det * dot(edge2, q)
                if t > EPSILON and t_min < t and t < t_max:
                    outward_normal, ok = safe_unit_vector(cross(edge1, edge2))
                    if ok == 1:
                        result = make_hit_record(
                            ray.direction,
                            t,
                            ray_at(ray, t),
                            outward_normal,
                            triangle.material_id,
                        )

    return result
