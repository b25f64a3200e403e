"""Vector algebra and random vector generators for device code.

Points, directions and linear RGB colors all share the same type,
``taichi.math.vec3``. Arithmetic (add, subtract, negate, componentwise and
scalar multiply/divide) comes from the Taichi vector type itself; this module
adds the geometric helpers and the Monte Carlo sampling routines used by the
materials and the camera.

All functions except :func:`as_vec3_tuple` are Taichi functions and must be
called from inside a kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.core.vec3 import random_unit_vector, unit, vec3
    >>> @ti.kernel
    ... def sample() -> ti.f32:
    ...     return unit(vec3(3.0, 0.0, 4.0)).z
"""

import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components smaller than this are treated as zero by near_zero()
NEAR_ZERO_EPSILON = 1e-8


def as_vec3_tuple(value: Sequence[float], name: str = "vector") -> tuple[float, float, float]:
    """Convert a 3-sequence into a tuple of finite floats.

    Args:
        value: Any sequence with exactly three numeric components.
        name: Name used in error messages.

    Returns:
        The components as a ``(x, y, z)`` tuple of floats.

    Raises:
        ValueError: If the value does not have three finite components.
    """
    components = tuple(float(c) for c in value)
    if len(components) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(components)}")
    if not all(math.isfinite(c) for c in components):
        raise ValueError(f"{name} components must be finite, got {components}")
    return components  # type: ignore[return-value]


# =============================================================================
# Geometric Helpers
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared length, cheaper than length() when only comparing magnitudes."""
    return v.x * v.x + v.y * v.y + v.z * v.z


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def unit(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Unlike ``tm.normalize`` there is no guard: a zero-length input produces
    NaN components, so callers must never pass a degenerate vector.

    Args:
        v: The vector to normalize.

    Returns:
        ``v / length(v)``.
    """
    return v / length(v)


@ti.func
def vec_sqrt(v: vec3) -> vec3:
    """Componentwise square root (used for gamma 2 correction)."""
    return vec3(ti.sqrt(v.x), ti.sqrt(v.y), ti.sqrt(v.z))


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component is below NEAR_ZERO_EPSILON in magnitude.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_range(min_value: ti.f32, max_value: ti.f32) -> vec3:
    """Uniform random point in the cube [min_value, max_value)^3."""
    span = max_value - min_value
    return vec3(
        min_value + span * ti.random(ti.f32),
        min_value + span * ti.random(ti.f32),
        min_value + span * ti.random(ti.f32),
    )


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point strictly inside the unit sphere.

    Uses rejection sampling: draw from the enclosing cube until the point
    lands inside the sphere (accepted with probability pi/6 per draw).

    Returns:
        A random point with length_squared < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    while True:
        p = random_range(-1.0, 1.0)
        if length_squared(p) < 1.0:
            break
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Random direction, the normalized form of random_in_unit_sphere()."""
    return unit(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Same rejection technique as random_in_unit_sphere() in two dimensions.
    Used for lens sampling in the thin lens camera.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    while True:
        p = vec3(
            ti.random(ti.f32) * 2.0 - 1.0,
            ti.random(ti.f32) * 2.0 - 1.0,
            0.0,
        )
        if p.x * p.x + p.y * p.y < 1.0:
            break
    return p
