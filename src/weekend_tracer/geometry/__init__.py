"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) returning a HitRecord
whose normal always faces against the incoming ray.
"""

from .sphere import Face, HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "Face",
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
]
