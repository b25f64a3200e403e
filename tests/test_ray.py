"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Reflection, refraction and Schlick reflectance
"""

import math

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from weekend_tracer.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_unnormalized_direction(self):
        """Test ray_at scales by the direction's own length."""
        from weekend_tracer.core.ray import make_ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2]) < 1e-6


class TestReflectRefract:
    """Tests for reflect, refract and reflectance."""

    def test_reflect(self):
        """Test mirror reflection about the +y normal."""
        from weekend_tracer.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_normal_incidence_passes_straight(self):
        """Test a ray along the normal is not bent."""
        from weekend_tracer.core.ray import refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] + 1.0) < 1e-6

    def test_refract_snells_law(self):
        """Test sin(theta_t) = ratio * sin(theta_i) at 45 degrees."""
        from weekend_tracer.core.ray import refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())
        ratio = 1.0 / 1.5

        @ti.kernel
        def test_kernel():
            s = ti.sqrt(0.5)
            result[None] = refract(vec3(s, 0.0, -s), vec3(0.0, 0.0, 1.0), ratio)

        test_kernel()
        r = result[None]
        sin_t = abs(r[0]) / math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2)
        assert abs(sin_t - ratio * math.sqrt(0.5)) < 1e-5
        # Bent toward the normal but still going into the surface
        assert r[2] < 0.0

    def test_reflectance_values(self):
        """Test Schlick at normal incidence (r0) and at grazing angle (1)."""
        from weekend_tracer.core.ray import reflectance

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = reflectance(1.0, 1.0 / 1.5)
            result[1] = reflectance(0.0, 1.0 / 1.5)

        test_kernel()
        assert abs(result[0] - 0.04) < 1e-5
        assert abs(result[1] - 1.0) < 1e-5
