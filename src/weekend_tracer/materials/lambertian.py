"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters in the direction ``normal + random_unit_vector()``.
Adding a uniformly distributed unit vector to the unit normal yields directions
whose density falls off with the cosine of the angle to the normal, so the
attenuation is simply the albedo and no explicit PDF weighting is needed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal)
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.vec3 import near_zero, random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Sample a scattered ray direction for a Lambertian surface.

    Lambertian surfaces always scatter. When the random unit vector almost
    exactly cancels the normal, the sum is replaced by the normal itself so
    that nothing downstream normalizes a zero vector.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation) where:
        - scattered_direction: The sampled direction (not normalized).
        - attenuation: The albedo.
    """
    scattered_direction = normal + random_unit_vector()

    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo
