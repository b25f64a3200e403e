"""Core rendering module.

Components:
    vec3: Vector helpers and random direction sampling
    ray: Ray data structure, reflection and refraction
    integrator: Light transport for a single camera ray
    stream: Bounded channel carrying sample batches
    accumulation: Per-pixel running sums and gamma-corrected snapshots
    orchestrator: Progressive, cancellable render runs

Only the device helpers are re-exported here. Import integrator,
stream, accumulation and orchestrator from their modules directly.
"""

from .ray import (
    Ray,
    make_ray,
    ray_at,
    reflect,
    reflectance,
    refract,
)
from .vec3 import (
    as_vec3_tuple,
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    unit,
    vec3,
    vec_sqrt,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "reflect",
    "refract",
    "reflectance",
    "vec3",
    "as_vec3_tuple",
    "length",
    "length_squared",
    "dot",
    "cross",
    "unit",
    "vec_sqrt",
    "near_zero",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
