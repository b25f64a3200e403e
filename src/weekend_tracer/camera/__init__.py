"""Camera module for view and ray generation.

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .thin_lens import (
    Camera,
    CameraParams,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    get_ray_through,
    is_camera_loaded,
    load_camera,
    require_camera,
    unload_camera,
)

__all__ = [
    "Camera",
    "CameraParams",
    "load_camera",
    "unload_camera",
    "is_camera_loaded",
    "require_camera",
    "get_ray",
    "get_ray_jittered",
    "get_ray_through",
    "get_camera_info",
]
