"""Dielectric (glass/water) material implementation.

Dielectrics never absorb: every hit either reflects or refracts, and the
attenuation is always white.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when the refraction ratio times sin(theta)
      exceeds 1
    - Schlick's approximation for the angle-dependent Fresnel reflectance,
      used as the probability of reflecting instead of refracting

The stochastic reflect/refract choice is the intended behavior: averaged over
many samples it reproduces the Fresnel-weighted blend of both paths.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_dielectric(ir, incident, normal, face)
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import reflect, reflectance, refract
from weekend_tracer.core.vec3 import dot, unit
from weekend_tracer.geometry.sphere import Face

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio_for(ir: ti.f32, face: ti.i32) -> ti.f32:
    """Ratio of refractive indices for a hit on the given face.

    Entering the material (front face) the ratio is 1/ir; leaving it (back
    face) the ratio is ir.
    """
    ratio = ir
    if face == int(Face.FRONT):
        ratio = 1.0 / ir
    return ratio


@ti.func
def cannot_refract(ir: ti.f32, incident_direction: vec3, normal: vec3, face: ti.i32) -> ti.i32:
    """Check whether total internal reflection forces a reflection.

    Args:
        ir: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        face: Face.FRONT or Face.BACK as an integer.

    Returns:
        1 if refraction is impossible, 0 otherwise.
    """
    ratio = refraction_ratio_for(ir, face)
    unit_direction = unit(incident_direction)
    cos_theta = tm.min(-dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(ir: ti.f32, incident_direction: vec3, normal: vec3, face: ti.i32) -> ti.f32:
    """Schlick reflectance for this hit, i.e. the probability of reflecting."""
    ratio = refraction_ratio_for(ir, face)
    cos_theta = tm.min(-dot(unit(incident_direction), normal), 1.0)
    return reflectance(cos_theta, ratio)


@ti.func
def scatter_dielectric(
    ir: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    face: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ir: Index of refraction of the material (e.g. 1.5 for glass).
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        face: Face.FRONT (1) when entering the material, Face.BACK (0) when
            leaving it.

    Returns:
        A tuple of (scattered_direction, attenuation) where:
        - scattered_direction: The reflected or refracted unit direction.
        - attenuation: Always white.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    ratio = refraction_ratio_for(ir, face)
    unit_direction = unit(incident_direction)
    cos_theta = tm.min(-dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0 or reflectance(cos_theta, ratio) > ti.random(ti.f32):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation
