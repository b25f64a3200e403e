"""Light integrator: the radiance estimate for one camera ray.

ray_color() follows a path through the scene. At every hit the material
either scatters the ray, multiplying the path throughput by its attenuation,
or absorbs it, ending the path with black. A ray that escapes the scene picks
up the sky gradient. After max_depth bounces without escaping the path is
black as well.

The path is traced as a loop with a throughput accumulator; a path of depth d
gives exactly the product of the attenuations along it times the background it
finally reaches.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.camera.thin_lens import Camera, CameraParams, load_camera
    >>> from weekend_tracer.core.integrator import trace_samples
    >>> from weekend_tracer.scene.intersection import load_scene
    >>> from weekend_tracer.scene.presets import ground_and_sphere_scene
    >>> load_scene(ground_and_sphere_scene())
    >>> load_camera(Camera.from_params(CameraParams(image_width=20, aspect_ratio=2.0)))
    >>> xs, ys = np.array([0, 19]), np.array([9, 0])
    >>> colors = trace_samples(xs, ys, width=20, height=10, max_depth=10)
    >>> colors.shape
    (2, 3)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from weekend_tracer.camera.thin_lens import get_ray_through, require_camera
from weekend_tracer.core.vec3 import unit
from weekend_tracer.materials.material import scatter
from weekend_tracer.scene.intersection import hit_world

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Integrator Constants
# =============================================================================

# Minimum ray parameter; keeps scattered rays from re-hitting their origin
T_MIN = 1e-4

# Rays are unbounded
T_MAX = tm.inf

WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)


@ti.func
def background(direction: vec3) -> vec3:
    """Sky gradient seen by rays that leave the scene.

    White at the bottom (y = -1) blending linearly to sky blue at the top
    (y = 1) of the normalized direction.
    """
    unit_direction = unit(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * WHITE + t * SKY_BLUE


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be normalized).
        max_depth: Maximum number of scattering events. 0 yields black.

    Returns:
        The linear RGB radiance estimate.
    """
    ray_origin = origin
    ray_direction = direction
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = hit_world(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter(
                    rec.material_id, ray_direction, rec.normal, rec.face
                )
                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    # Paths still active here ran out of depth and stay black
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _trace_batch(
    xs: ti.types.ndarray(dtype=ti.i32, ndim=1),
    ys: ti.types.ndarray(dtype=ti.i32, ndim=1),
    offsets: ti.types.ndarray(dtype=ti.f32, ndim=2),
    out: ti.types.ndarray(dtype=ti.f32, ndim=2),
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
):
    """Trace one sample for each (xs[i], ys[i]) through offsets[i] into out[i]."""
    for i in range(xs.shape[0]):
        ray = get_ray_through(xs[i], ys[i], offsets[i, 0], offsets[i, 1], width, height)
        color = ray_color(ray.origin, ray.direction, max_depth)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0
            out[i, c] = color[c]


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    return ray_color(origin, direction, max_depth)


@ti.kernel
def _background(direction: vec3) -> vec3:
    return background(direction)


# =============================================================================
# Public Tracing API
# =============================================================================


def trace_samples(
    xs: np.ndarray,
    ys: np.ndarray,
    width: int,
    height: int,
    max_depth: int,
    offsets: np.ndarray | None = None,
) -> np.ndarray:
    """Trace one sample for each pixel coordinate, in parallel.

    Uses the scene and camera currently loaded on the device.

    Args:
        xs: Pixel columns (0 = left).
        ys: Pixel rows (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of scattering events per path.
        offsets: Position of each sample inside its pixel, shape (n, 2),
            values in [0, 1). Drawn uniformly at random when omitted.

    Returns:
        float32 array of shape (len(xs), 3) holding one linear color per
        coordinate, free of NaN and Inf.

    Raises:
        RuntimeError: If no camera has been loaded.
        ValueError: If xs, ys and offsets disagree in length.
    """
    require_camera()
    xs = np.ascontiguousarray(xs, dtype=np.int32)
    ys = np.ascontiguousarray(ys, dtype=np.int32)
    if xs.shape != ys.shape or xs.ndim != 1:
        raise ValueError(f"xs and ys must be 1-D arrays of equal length, got {xs.shape} and {ys.shape}")
    n = xs.shape[0]
    if offsets is None:
        offsets = np.random.default_rng().random((n, 2), dtype=np.float32)
    offsets = np.ascontiguousarray(offsets, dtype=np.float32)
    if offsets.shape != (n, 2):
        raise ValueError(f"offsets must have shape ({n}, 2), got {offsets.shape}")

    out = np.zeros((n, 3), dtype=np.float32)
    if n > 0:
        _trace_batch(xs, ys, offsets, out, width, height, max_depth)
    return out


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
) -> tuple[float, float, float]:
    """Evaluate ray_color() for a single ray against the loaded scene.

    Intended for testing and debugging.
    """
    color = _trace_ray(vec3(*origin), vec3(*direction), max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def background_color(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate the sky gradient for a direction from Python."""
    color = _background(vec3(*direction))
    return (float(color[0]), float(color[1]), float(color[2]))
