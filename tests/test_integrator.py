"""Unit tests for the path integrator.

Tests cover:
- Sky gradient for escaping rays
- Depth limit (0 renders black, running out of depth stays black)
- Attenuation through a chain of mirrors
- Batch tracing API
"""

import numpy as np
import pytest


class TestBackground:
    """Tests for the sky gradient."""

    def test_straight_up_is_sky_blue(self):
        from weekend_tracer.core.integrator import background_color

        r, g, b = background_color((0.0, 5.0, 0.0))
        assert abs(r - 0.5) < 1e-6
        assert abs(g - 0.7) < 1e-6
        assert abs(b - 1.0) < 1e-6

    def test_straight_down_is_white(self):
        from weekend_tracer.core.integrator import background_color

        color = background_color((0.0, -1.0, 0.0))
        np.testing.assert_allclose(color, [1.0, 1.0, 1.0], atol=1e-6)

    def test_horizon_blend(self):
        from weekend_tracer.core.integrator import background_color

        color = background_color((1.0, 0.0, 0.0))
        np.testing.assert_allclose(color, [0.75, 0.85, 1.0], atol=1e-6)


class TestRayColor:
    """Tests for ray_color() through trace_ray()."""

    def test_zero_depth_is_black(self, load_world):
        from weekend_tracer.core.integrator import trace_ray
        from weekend_tracer.scene.world import Scene

        load_world(Scene())
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0) == (0.0, 0.0, 0.0)

    def test_miss_returns_background(self, load_world):
        from weekend_tracer.core.integrator import trace_ray
        from weekend_tracer.scene.presets import ground_and_sphere_scene

        load_world(ground_and_sphere_scene())
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 1)
        np.testing.assert_allclose(color, [0.5, 0.7, 1.0], atol=1e-6)

    def test_out_of_depth_is_black(self, load_world):
        """Test a single bounce allowance ends a path that hits something."""
        from weekend_tracer.core.integrator import trace_ray
        from weekend_tracer.scene.presets import ground_and_sphere_scene

        load_world(ground_and_sphere_scene())
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1) == (0.0, 0.0, 0.0)

    def test_mirror_attenuates_background(self, load_world):
        """Test one perfect-mirror bounce multiplies the sky by the albedo."""
        from weekend_tracer.core.integrator import trace_ray
        from weekend_tracer.materials.material import Metal
        from weekend_tracer.scene.world import Scene, SphereSpec

        load_world(Scene.of(SphereSpec((0.0, -100.0, 0.0), 99.0, Metal((0.5, 0.25, 1.0), 0.0))))
        color = trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), 2)
        np.testing.assert_allclose(color, [0.25, 0.175, 1.0], atol=1e-5)

    def test_lambertian_enclosure_is_black(self, load_world):
        """Test a path that can never escape stays black."""
        from weekend_tracer.core.integrator import trace_ray
        from weekend_tracer.materials.material import Lambertian
        from weekend_tracer.scene.world import Scene, SphereSpec

        load_world(Scene.of(SphereSpec((0.0, 0.0, 0.0), -10.0, Lambertian((1.0, 1.0, 1.0)))))
        assert trace_ray((0.0, 0.0, 0.0), (0.3, 0.2, -1.0), 20) == (0.0, 0.0, 0.0)


class TestTraceSamples:
    """Tests for the batch tracing API."""

    def test_shape_and_finite(self, load_world):
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.presets import three_spheres_camera, three_spheres_scene

        load_world(three_spheres_scene(), three_spheres_camera(image_width=32))
        xs = np.tile(np.arange(32), 18)
        ys = np.repeat(np.arange(18), 32)
        colors = trace_samples(xs, ys, 32, 18, 10)
        assert colors.shape == (32 * 18, 3)
        assert colors.dtype == np.float32
        assert np.isfinite(colors).all()
        assert (colors >= 0.0).all()

    def test_empty_batch(self, load_world):
        from weekend_tracer.camera.thin_lens import CameraParams
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.world import Scene

        load_world(Scene(), CameraParams(image_width=4))
        colors = trace_samples(np.array([], dtype=np.int32), np.array([], dtype=np.int32), 4, 2, 5)
        assert colors.shape == (0, 3)

    def test_requires_camera(self, load_world):
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.world import Scene

        load_world(Scene())
        with pytest.raises(RuntimeError, match="No camera loaded"):
            trace_samples(np.array([0]), np.array([0]), 1, 1, 5)

    def test_mismatched_coordinates(self, load_world):
        from weekend_tracer.camera.thin_lens import CameraParams
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.world import Scene

        load_world(Scene(), CameraParams(image_width=4))
        with pytest.raises(ValueError, match="equal length"):
            trace_samples(np.array([0, 1]), np.array([0]), 4, 2, 5)

    def test_empty_scene_renders_sky(self, load_world):
        """Test every sample of an empty scene lies on the sky gradient."""
        from weekend_tracer.camera.thin_lens import CameraParams
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.world import Scene

        load_world(Scene(), CameraParams(image_width=8, aspect_ratio=2.0))
        xs = np.tile(np.arange(8), 4)
        ys = np.repeat(np.arange(4), 8)
        colors = trace_samples(xs, ys, 8, 4, 1)
        np.testing.assert_allclose(colors[:, 2], 1.0, atol=1e-6)
        np.testing.assert_allclose(1.0 - colors[:, 1], 0.6 * (1.0 - colors[:, 0]), atol=1e-5)

    def test_fixed_offsets_repeat_exactly(self, load_world):
        """Test equal offsets give equal colors when paths stop at the first hit."""
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.presets import ground_and_sphere_camera, ground_and_sphere_scene

        load_world(ground_and_sphere_scene(), ground_and_sphere_camera(image_width=16, aspect_ratio=2.0))
        xs = np.tile(np.arange(16), 8)
        ys = np.repeat(np.arange(8), 16)
        offsets = np.random.default_rng(3).random((xs.size, 2), dtype=np.float32)
        first = trace_samples(xs, ys, 16, 8, 1, offsets=offsets)
        second = trace_samples(xs, ys, 16, 8, 1, offsets=offsets)
        np.testing.assert_array_equal(first, second)

    def test_offsets_shape_checked(self, load_world):
        from weekend_tracer.camera.thin_lens import CameraParams
        from weekend_tracer.core.integrator import trace_samples
        from weekend_tracer.scene.world import Scene

        load_world(Scene(), CameraParams(image_width=4))
        with pytest.raises(ValueError, match="offsets"):
            trace_samples(np.array([0, 1]), np.array([0, 0]), 4, 2, 5, offsets=np.zeros((2, 3)))
