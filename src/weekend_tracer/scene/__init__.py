"""Scene module: scene description, device storage and presets.

Components:
    world: Immutable Scene and SphereSpec values
    intersection: Device mirror of a Scene and closest-hit queries
    presets: Ready-made scenes with matching cameras

Scene data is organized for device access:
    - Structure-of-Arrays layout for sphere data
    - One material id per sphere, indexing the material registry
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    clear_scene,
    get_sphere_count,
    hit_world,
    load_scene,
)
from .presets import (
    PRESETS,
    RandomSceneParams,
    ground_and_sphere_camera,
    ground_and_sphere_scene,
    random_scene,
    random_scene_camera,
    three_spheres_camera,
    three_spheres_scene,
)
from .world import Scene, SphereSpec

__all__ = [
    # World module
    "Scene",
    "SphereSpec",
    # Intersection module
    "SceneHitRecord",
    "load_scene",
    "clear_scene",
    "get_sphere_count",
    "hit_world",
    "MAX_SPHERES",
    # Presets module
    "PRESETS",
    "RandomSceneParams",
    "ground_and_sphere_scene",
    "ground_and_sphere_camera",
    "three_spheres_scene",
    "three_spheres_camera",
    "random_scene",
    "random_scene_camera",
]
