"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport lies on the focal plane, focus_distance in front of the camera.
Each ray starts from a random point on a lens disk of radius aperture / 2 in
the (u, v) plane and passes through the requested viewport point, so objects
away from the focal plane blur in proportion to their distance from it. An
aperture of 0 gives a pinhole camera.

The derived configuration is computed once on the Python side with NumPy and
uploaded to Taichi fields by load_camera().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.camera.thin_lens import Camera, CameraParams, load_camera
    >>> params = CameraParams(
    ...     look_from=(13.0, 2.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     vfov_degrees=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_distance=10.0,
    ...     image_width=300,
    ... )
    >>> load_camera(Camera.from_params(params))
    >>> # Use get_ray / get_ray_jittered within a Taichi kernel
"""

import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import Ray, make_ray
from weekend_tracer.core.vec3 import as_vec3_tuple, random_in_unit_disk

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraParams:
    """Extrinsic and intrinsic camera parameters.

    Attributes:
        look_from: Camera position in world space.
        look_at: Point the camera is looking at.
        vup: Up direction used to orient the camera.
        vfov_degrees: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image, > 0.
        aperture: Lens diameter. 0 disables depth of field.
        focus_distance: Distance from the camera to the plane in focus, > 0.
        image_width: Output width in pixels, >= 1.
    """

    look_from: Vec3Tuple = (0.0, 0.0, 0.0)
    look_at: Vec3Tuple = (0.0, 0.0, -1.0)
    vup: Vec3Tuple = (0.0, 1.0, 0.0)
    vfov_degrees: float = 90.0
    aspect_ratio: float = 16.0 / 9.0
    aperture: float = 0.0
    focus_distance: float = 1.0
    image_width: int = 400

    def __post_init__(self) -> None:
        object.__setattr__(self, "look_from", as_vec3_tuple(self.look_from, "look_from"))
        object.__setattr__(self, "look_at", as_vec3_tuple(self.look_at, "look_at"))
        object.__setattr__(self, "vup", as_vec3_tuple(self.vup, "vup"))

        if not 0.0 < self.vfov_degrees < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {self.vfov_degrees}")
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be a finite value > 0, got {self.aspect_ratio}")
        if not math.isfinite(self.aperture) or self.aperture < 0.0:
            raise ValueError(f"Aperture must be >= 0, got {self.aperture}")
        if not math.isfinite(self.focus_distance) or self.focus_distance <= 0.0:
            raise ValueError(f"Focus distance must be > 0, got {self.focus_distance}")
        if int(self.image_width) < 1:
            raise ValueError(f"Image width must be at least 1 pixel, got {self.image_width}")
        object.__setattr__(self, "image_width", int(self.image_width))

    @property
    def image_height(self) -> int:
        """Output height in pixels, derived from width and aspect ratio."""
        # Halves round up, not to even
        return max(1, math.floor(self.image_width / self.aspect_ratio + 0.5))

    def resized(self, width: int, height: int) -> "CameraParams":
        """Copy of these parameters for a new output resolution.

        The aspect ratio follows the new width and height.

        Raises:
            ValueError: If width or height is less than 1.
        """
        if width < 1 or height < 1:
            raise ValueError(f"Resolution must be at least 1x1, got {width}x{height}")
        return replace(self, image_width=width, aspect_ratio=width / height)


@dataclass(frozen=True)
class Camera:
    """Derived camera configuration, immutable once computed.

    Attributes:
        origin: Camera position.
        u: Right direction.
        v: Up direction.
        w: Backward direction (opposite view direction).
        horizontal: Full viewport width vector on the focal plane.
        vertical: Full viewport height vector on the focal plane.
        lower_left_corner: Lower-left corner of the viewport.
        lens_radius: Half the aperture.
        image_width: Output width in pixels.
        image_height: Output height in pixels.
    """

    origin: Vec3Tuple
    u: Vec3Tuple
    v: Vec3Tuple
    w: Vec3Tuple
    horizontal: Vec3Tuple
    vertical: Vec3Tuple
    lower_left_corner: Vec3Tuple
    lens_radius: float
    image_width: int
    image_height: int

    @classmethod
    def from_params(cls, params: CameraParams) -> "Camera":
        """Compute the camera basis and viewport from its parameters.

        Raises:
            ValueError: If look_from equals look_at, or vup is parallel to
                the view direction.
        """
        theta = math.radians(params.vfov_degrees)
        h = math.tan(theta / 2.0)
        viewport_height = 2.0 * h
        viewport_width = params.aspect_ratio * viewport_height

        look_from = np.array(params.look_from, dtype=np.float64)
        look_at = np.array(params.look_at, dtype=np.float64)
        vup = np.array(params.vup, dtype=np.float64)

        # w points from look_at toward look_from (backward)
        w = look_from - look_at
        w_length = np.linalg.norm(w)
        if w_length == 0.0:
            raise ValueError("look_from and look_at must be different points")
        w = w / w_length

        u = np.cross(vup, w)
        u_length = np.linalg.norm(u)
        if u_length < 1e-12:
            raise ValueError("vup must not be parallel to the view direction")
        u = u / u_length

        v = np.cross(w, u)

        horizontal = params.focus_distance * viewport_width * u
        vertical = params.focus_distance * viewport_height * v
        lower_left = look_from - horizontal / 2.0 - vertical / 2.0 - params.focus_distance * w

        def _t(a: np.ndarray) -> Vec3Tuple:
            return (float(a[0]), float(a[1]), float(a[2]))

        return cls(
            origin=_t(look_from),
            u=_t(u),
            v=_t(v),
            w=_t(w),
            horizontal=_t(horizontal),
            vertical=_t(vertical),
            lower_left_corner=_t(lower_left),
            lens_radius=params.aperture / 2.0,
            image_width=params.image_width,
            image_height=params.image_height,
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())
_lens_radius = ti.field(dtype=ti.f32, shape=())

_loaded = False


def load_camera(camera: Camera) -> None:
    """Upload a camera configuration for use by get_ray()."""
    global _loaded
    _camera_origin[None] = camera.origin
    _camera_u[None] = camera.u
    _camera_v[None] = camera.v
    _viewport_horizontal[None] = camera.horizontal
    _viewport_vertical[None] = camera.vertical
    _lower_left_corner[None] = camera.lower_left_corner
    _lens_radius[None] = camera.lens_radius
    _loaded = True


def unload_camera() -> None:
    """Forget the uploaded camera; require_camera() fails until the next load."""
    global _loaded
    _loaded = False


def is_camera_loaded() -> bool:
    return _loaded


def require_camera() -> None:
    """Raise RuntimeError if no camera has been uploaded yet."""
    if not _loaded:
        raise RuntimeError("No camera loaded. Call load_camera() before rendering.")


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through viewport coordinates (s, t).

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray starting on the lens disk. The direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y
    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - origin
    )
    return make_ray(origin, direction)


@ti.func
def get_ray_through(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    offset_x: ti.f32,
    offset_y: ti.f32,
    width: ti.i32,
    height: ti.i32,
) -> Ray:
    """Generate a ray through a given point of a pixel.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = bottom).
        offset_x: Horizontal position inside the pixel, in [0, 1).
        offset_y: Vertical position inside the pixel, in [0, 1).
        width: Image width in pixels.
        height: Image height in pixels.
    """
    # Floored at 1 so one-pixel images stay finite
    denom_x = ti.cast(ti.max(width - 1, 1), ti.f32)
    denom_y = ti.cast(ti.max(height - 1, 1), ti.f32)

    s = (ti.cast(pixel_x, ti.f32) + offset_x) / denom_x
    t = (ti.cast(pixel_y, ti.f32) + offset_y) / denom_y
    return get_ray(s, t)


@ti.func
def get_ray_jittered(pixel_x: ti.i32, pixel_y: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a ray with a random offset inside the pixel.

    Returns:
        A Ray through a uniformly random point of the pixel.
    """
    return get_ray_through(pixel_x, pixel_y, ti.random(ti.f32), ti.random(ti.f32), width, height)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, ...]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, u, v, horizontal, vertical, lower_left and
        lens_radius.
    """

    def _read(f) -> tuple[float, float, float]:
        vec = f[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _read(_camera_origin),
        "u": _read(_camera_u),
        "v": _read(_camera_v),
        "horizontal": _read(_viewport_horizontal),
        "vertical": _read(_viewport_vertical),
        "lower_left": _read(_lower_left_corner),
        "lens_radius": (float(_lens_radius[None]),),
    }
