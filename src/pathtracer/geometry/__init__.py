"""Geometric primitives and ray intersection.

Components:
    hit_record: The HitRecord shared by every primitive, plus the single
        face-orientation helper
    sphere: Sphere primitive with half-b ray-sphere intersection
    triangle: Triangle primitive with Moller-Trumbore intersection

All intersection routines are Taichi functions (@ti.func) and follow the
same contract: hit(ray, t_min, t_max) returns the nearest root strictly
inside (t_min, t_max), or a record with hit == 0.
"""

from .hit_record import HitRecord, make_hit_record, make_miss_record
from .sphere import Sphere, hit_sphere
from .triangle import Triangle, hit_triangle

__all__ = [
    "HitRecord",
    "make_hit_record",
    "make_miss_record",
    "Sphere",
    "hit_sphere",
    "Triangle",
    "hit_triangle",
]
