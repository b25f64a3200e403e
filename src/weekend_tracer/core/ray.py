"""Ray data structure and the optics helpers built on it.

A ray is an origin plus a direction; the direction is not required to be
unit length. Points along the ray are evaluated as ``origin + t * direction``.

The reflection/refraction helpers live here because every scattering model
needs them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point() -> ti.f32:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 0.5).z
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.vec3 import dot, length_squared

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Any non-zero
            length is allowed.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror v about the unit normal n: ``v - 2 (v . n) n``.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        The reflected direction, same length as v.
    """
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is built from its components perpendicular and
    parallel to the normal. Callers are responsible for checking total
    internal reflection first; the parallel term uses the absolute value so
    the result stays finite even when they do not.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal facing the incoming ray (unit length).
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction (unit length for valid refraction).
    """
    cos_theta = tm.min(dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Fresnel reflectance using Schlick's approximation.

    ``r0 + (1 - r0) (1 - cos)^5`` with ``r0 = ((1 - ref_idx) / (1 + ref_idx))^2``.

    Args:
        cosine: Cosine of the angle between incoming direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate probability of reflection in [0, 1].
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
