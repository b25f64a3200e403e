"""Unit tests for the Lambertian material.

Tests cover:
- Scattered directions lie in the hemisphere around the normal
- Cosine-weighted distribution
- Attenuation equals albedo
- Albedo validation
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 20000


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_directions_in_hemisphere(self):
        """Test every scattered direction has non-negative dot with the normal."""
        from weekend_tracer.materials.lambertian import scatter_lambertian

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                normal = ti.math.vec3(0.0, 1.0, 0.0)
                direction, _ = scatter_lambertian(ti.math.vec3(0.5, 0.5, 0.5), normal)
                directions[i] = direction

        test_kernel()
        d = directions.to_numpy()
        assert (d[:, 1] >= -1e-6).all()
        assert np.isfinite(d).all()
        assert (np.linalg.norm(d, axis=1) > 0.0).all()

    def test_cosine_weighted(self):
        """Test E[cos theta] = 2/3 for a cosine-weighted distribution."""
        from weekend_tracer.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                normal = ti.math.vec3(0.0, 0.0, 1.0)
                direction, _ = scatter_lambertian(ti.math.vec3(0.5, 0.5, 0.5), normal)
                cosines[i] = direction.normalized().z

        test_kernel()
        assert abs(cosines.to_numpy().mean() - 2.0 / 3.0) < 0.02

    def test_attenuation_is_albedo(self):
        """Test the returned attenuation is the albedo unchanged."""
        from weekend_tracer.materials.lambertian import scatter_lambertian

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation = scatter_lambertian(
                ti.math.vec3(0.1, 0.2, 0.3), ti.math.vec3(1.0, 0.0, 0.0)
            )
            result[None] = attenuation

        test_kernel()
        np.testing.assert_allclose(result.to_numpy(), [0.1, 0.2, 0.3], atol=1e-6)


class TestLambertianValidation:
    """Tests for Lambertian parameter validation."""

    @pytest.mark.parametrize("albedo", [(-0.1, 0.5, 0.5), (0.5, 1.01, 0.5)])
    def test_albedo_out_of_range(self, albedo):
        from weekend_tracer.materials.material import Lambertian

        with pytest.raises(ValueError, match="outside \\[0, 1\\]"):
            Lambertian(albedo=albedo)

    def test_albedo_normalized_to_tuple(self):
        from weekend_tracer.materials.material import Lambertian

        assert Lambertian(albedo=[0, 1, 0.5]).albedo == (0.0, 1.0, 0.5)

    def test_equal_materials_are_equal_values(self):
        from weekend_tracer.materials.material import Lambertian

        assert Lambertian((0.5, 0.5, 0.5)) == Lambertian([0.5, 0.5, 0.5])
        assert hash(Lambertian((0.5, 0.5, 0.5))) == hash(Lambertian([0.5, 0.5, 0.5]))
