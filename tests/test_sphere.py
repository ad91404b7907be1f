"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Ray tangent to sphere
- Interval bounds and degenerate radii
"""

import numpy as np
import pytest
import taichi as ti


def trace_sphere(origin, direction, center, radius, t_min=0.001, t_max=1e30):
    """Intersect one ray with one sphere and return the record as a dict."""
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.geometry.sphere import Sphere, hit_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    point = ti.Vector.field(3, dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, r: ti.f64, lo: ti.f64, hi: ti.f64):
        sphere = Sphere(center=c, radius=r, material_id=7)
        rec = hit_sphere(make_ray(o, d), sphere, lo, hi)
        hit[None] = rec.hit
        t_val[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal
        front_face[None] = rec.front_face
        material_id[None] = rec.material_id

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), radius, t_min, t_max)
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": point.to_numpy(),
        "normal": normal.to_numpy(),
        "front_face": front_face[None],
        "material_id": material_id[None],
    }


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """Test ray from the origin hitting the sphere in front of it."""
        rec = trace_sphere((0, 0, 0), (0, 0, -1), (0, 0, -1), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.5) < 1e-12
        np.testing.assert_allclose(rec["point"], [0.0, 0.0, -0.5], atol=1e-12)
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-12)
        assert rec["front_face"] == 1
        assert rec["material_id"] == 7

    def test_unnormalized_direction(self):
        """Test t is measured in units of the direction's length."""
        rec = trace_sphere((0, 0, 0), (0, 0, -2), (0, 0, -1), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.25) < 1e-12
        np.testing.assert_allclose(rec["point"], [0.0, 0.0, -0.5], atol=1e-12)

    def test_miss(self):
        """Test ray passing beside the sphere."""
        rec = trace_sphere((5, 0, 0), (0, 0, -1), (0, 0, 0), 1.0)
        assert rec["hit"] == 0
        assert rec["material_id"] == -1

    def test_sphere_behind_ray(self):
        """Test a sphere behind the origin is not hit."""
        rec = trace_sphere((0, 0, 0), (0, 0, 1), (0, 0, -3), 1.0)
        assert rec["hit"] == 0

    def test_inside_back_face(self):
        """Test ray from the center hits the far side with an inward normal."""
        rec = trace_sphere((0, 0, 0), (0, 0, 1), (0, 0, 0), 1.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 1.0) < 1e-12
        assert rec["front_face"] == 0
        # Normal opposes the ray: outward is +z, stored normal is -z
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, -1.0], atol=1e-12)

    def test_tangent(self):
        """Test a grazing ray with a zero discriminant counts as a hit."""
        rec = trace_sphere((1, 0, 5), (0, 0, -1), (0, 0, 0), 1.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-9

    def test_far_root_when_near_root_out_of_range(self):
        """Test the far root is used when the near root is below t_min."""
        rec = trace_sphere((0, 0, 2), (0, 0, -1), (0, 0, 0), 1.0, t_min=1.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 3.0) < 1e-12

    def test_interval_is_open(self):
        """Test a root exactly at t_max is rejected."""
        rec = trace_sphere((0, 0, 0), (0, 0, -1), (0, 0, -1), 0.5, t_max=0.5)
        assert rec["hit"] == 0

    def test_t_max_limits_hit(self):
        """Test roots beyond t_max are rejected."""
        rec = trace_sphere((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, t_max=3.0)
        assert rec["hit"] == 0

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_degenerate_radius_never_hits(self, radius):
        """Test zero and negative radii never report a hit."""
        rec = trace_sphere((0, 0, 5), (0, 0, -1), (0, 0, 0), radius)
        assert rec["hit"] == 0

    def test_zero_direction_never_hits(self):
        """Test a zero direction is a miss rather than a division by zero."""
        rec = trace_sphere((0, 0, 0), (0, 0, 0), (0, 0, 0), 1.0)
        assert rec["hit"] == 0

    def test_normal_is_unit(self):
        """Test the normal has unit length for an off-axis hit."""
        rec = trace_sphere((0.3, 0.2, 5), (0, 0, -1), (0, 0, 0), 2.0)
        assert rec["hit"] == 1
        assert abs(np.linalg.norm(rec["normal"]) - 1.0) < 1e-12
        assert np.dot(rec["normal"], [0.0, 0.0, -1.0]) < 0.0
