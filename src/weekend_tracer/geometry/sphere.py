"""Sphere primitive and ray-sphere intersection.

The intersection solves the quadratic in half-b form:

    a*t^2 + 2*half_b*t + c = 0

    a      = dot(direction, direction)
    half_b = dot(origin - center, direction)
    c      = dot(origin - center, origin - center) - radius^2

The smaller root is tried first and the larger root only if the smaller one
falls outside [t_min, t_max].

The radius is signed. A negative radius describes the same surface as its
absolute value, but the outward normal ``(point - center) / radius`` points
inward, which turns the sphere into a hollow shell (e.g. the inside of a
glass bubble). The sign must never be "fixed" by callers.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.vec3 import dot, length_squared

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class Face(IntEnum):
    """Which side of a surface a ray arrived from.

    FRONT means the ray came from the side the outward normal points to.
    """

    BACK = 0
    FRONT = 1


@ti.dataclass
class Sphere:
    """A sphere defined by center point and signed radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The signed radius. Negative values flip the normal.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal, always facing against the incoming
            ray. Only valid if hit == 1.
        face: Face.FRONT (1) if the ray hit the outward side, Face.BACK (0)
            otherwise. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test a ray against a sphere.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be
            normalized, must not be zero).
        sphere: The sphere to test intersection against.
        t_min: Smallest accepted ray parameter.
        t_max: Largest accepted ray parameter.

    Returns:
        A HitRecord. Check the hit field to determine if an intersection
        occurred. A sphere of radius zero is never hit.
    """
    oc = ray_origin - sphere.center
    a = length_squared(ray_direction)
    half_b = dot(oc, ray_direction)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    face = int(Face.FRONT)

    # A zero radius has no cross-section; skipping it also keeps the
    # normal computation below from dividing by zero.
    if discriminant >= 0.0 and sphere.radius != 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (-half_b - sqrt_d) / a
        valid = t_min <= root <= t_max
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = t_min <= root <= t_max

        if valid:
            did_hit = 1
            hit_t = root
            hit_point = ray_origin + root * ray_direction

            # Flips for negative radius (hollow sphere)
            outward_normal = (hit_point - sphere.center) / sphere.radius

            if dot(ray_direction, outward_normal) > 0.0:
                # Ray is inside the surface, hitting the back face
                face = int(Face.BACK)
                hit_normal = -outward_normal
            else:
                hit_normal = outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        face=face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and signed radius inside a kernel."""
    return Sphere(center=center, radius=radius)
