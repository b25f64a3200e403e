"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Hollow spheres (negative radius) flipping the normal
- Root selection against [t_min, t_max]
- Degenerate spheres and geometric invariants
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 512


def _hit(origin, direction, center, radius, t_min=0.0, t_max=1e10):
    """Run hit_sphere in a kernel and return the record as a dict."""
    from weekend_tracer.geometry.sphere import Sphere, hit_sphere, vec3

    cx, cy, cz = center
    ox, oy, oz = origin
    dx, dy, dz = direction
    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel():
        sphere = Sphere(center=vec3(cx, cy, cz), radius=radius)
        record = hit_sphere(
            vec3(ox, oy, oz),
            vec3(dx, dy, dz),
            sphere,
            t_min,
            t_max,
        )
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        face[None] = record.face

    test_kernel()
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": point.to_numpy(),
        "normal": normal.to_numpy(),
        "face": face[None],
    }


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_front_face_hit(self):
        """Test the reference hit: t=0.5, point (0,0,-0.5), normal (0,0,1)."""
        from weekend_tracer.geometry.sphere import Face

        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.5) < 1e-6
        np.testing.assert_allclose(rec["point"], [0.0, 0.0, -0.5], atol=1e-6)
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-6)
        assert rec["face"] == int(Face.FRONT)

    def test_hollow_sphere_flips_normal(self):
        """Test negative radius: same t and point, outward normal flipped.

        The outward normal becomes (0, 0, -1), pointing the same way as the
        ray, so the hit is classified as a back face and the stored normal
        is turned back against the ray.
        """
        from weekend_tracer.geometry.sphere import Face

        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), -0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.5) < 1e-6
        np.testing.assert_allclose(rec["point"], [0.0, 0.0, -0.5], atol=1e-6)
        assert rec["face"] == int(Face.BACK)
        outward = -rec["normal"]
        np.testing.assert_allclose(outward, [0.0, 0.0, -1.0], atol=1e-6)
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-6)

    def test_miss(self):
        """Test a ray passing beside the sphere."""
        rec = _hit((0.0, 2.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 0

    def test_inside_uses_far_root_and_back_face(self):
        """Test a ray starting at the center hits the far side from inside."""
        from weekend_tracer.geometry.sphere import Face

        rec = _hit((0.0, 0.0, -1.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_min=1e-4)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.5) < 1e-6
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-6)
        assert rec["face"] == int(Face.BACK)

    def test_both_roots_outside_range(self):
        """Test t_max before the near root means no hit."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_max=0.4)
        assert rec["hit"] == 0

    def test_range_is_inclusive(self):
        """Test a root exactly at t_max is accepted."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_max=0.5)
        assert rec["hit"] == 1

    def test_unnormalized_direction(self):
        """Test t is measured in units of the direction's length."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -2.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.25) < 1e-6

    def test_zero_radius_never_hit(self):
        """Test a zero-radius sphere is unhittable even dead center."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.0)
        assert rec["hit"] == 0
        assert np.isfinite(rec["normal"]).all()


class TestMakeSphere:
    """Tests for building spheres inside kernels."""

    def test_make_sphere_keeps_signed_radius(self):
        """Test make_sphere stores the center and the signed radius as given."""
        from weekend_tracer.geometry.sphere import make_sphere, vec3

        center = ti.Vector.field(3, dtype=ti.f32, shape=())
        radius = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), -0.25)
            center[None] = sphere.center
            radius[None] = sphere.radius

        test_kernel()
        np.testing.assert_allclose(center.to_numpy(), [1.0, 2.0, 3.0], atol=1e-6)
        assert abs(radius[None] + 0.25) < 1e-6


class TestSphereInvariants:
    """Randomized checks of the geometric invariants."""

    @pytest.mark.parametrize("radius", [0.75, -0.75])
    def test_hit_point_on_surface_and_normal_opposes_ray(self, radius):
        """Test |p - c| = |r|, |n| = 1 and dot(d, n) <= 0 for every hit."""
        from weekend_tracer.core.vec3 import dot, random_unit_vector
        from weekend_tracer.geometry.sphere import Sphere, hit_sphere, vec3

        cx, cy, cz = 0.3, -0.2, -2.0
        hits = ti.field(dtype=ti.i32, shape=N_SAMPLES)
        distance = ti.field(dtype=ti.f32, shape=N_SAMPLES)
        normal_length = ti.field(dtype=ti.f32, shape=N_SAMPLES)
        facing = ti.field(dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            c = vec3(cx, cy, cz)
            sphere = Sphere(center=c, radius=radius)
            for i in range(N_SAMPLES):
                # Origins inside and outside the sphere, random directions
                origin = c + 2.0 * random_unit_vector() * ti.random(ti.f32)
                direction = random_unit_vector() * (0.5 + ti.random(ti.f32))
                rec = hit_sphere(origin, direction, sphere, 1e-4, 1e10)
                hits[i] = rec.hit
                distance[i] = (rec.point - c).norm()
                normal_length[i] = rec.normal.norm()
                facing[i] = dot(direction, rec.normal)

        test_kernel()
        mask = hits.to_numpy() == 1
        assert mask.sum() > N_SAMPLES // 4
        np.testing.assert_allclose(distance.to_numpy()[mask], abs(radius), atol=1e-4)
        np.testing.assert_allclose(normal_length.to_numpy()[mask], 1.0, atol=1e-4)
        assert (facing.to_numpy()[mask] <= 1e-6).all()
