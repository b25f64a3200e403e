"""Device-side scene storage and closest-hit queries.

A Scene is mirrored into Taichi fields in Structure of Arrays layout so kernels
can scan it. The scan is linear over every sphere; each accepted hit shrinks
t_max so the last accepted hit is the nearest one.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.scene.intersection import load_scene, hit_world
    >>> from weekend_tracer.scene.presets import ground_and_sphere_scene
    >>> load_scene(ground_and_sphere_scene())
    >>> # Use hit_world within a Taichi kernel
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from weekend_tracer.geometry.sphere import Face, HitRecord, hit_sphere, make_sphere
from weekend_tracer.materials.material import (
    MAX_MATERIALS,
    clear_materials,
    load_materials,
)
from weekend_tracer.scene.world import Scene

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The ray parameter of the nearest intersection.
        point: The intersection point.
        normal: The unit surface normal, facing against the incoming ray.
        face: Face.FRONT (1) or Face.BACK (0).
        material_id: Index into the material registry. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    face: ti.i32
    material_id: ti.i32


# Maximum number of spheres supported in a loaded scene
MAX_SPHERES = 2048

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres and materials from the device.

    Resets the counts to zero. The field data is overwritten by the next
    load_scene().
    """
    num_spheres[None] = 0
    clear_materials()


def load_scene(scene: Scene) -> None:
    """Upload a scene, replacing whatever was loaded before.

    Args:
        scene: The scene to upload.

    Raises:
        RuntimeError: If the scene has more than MAX_SPHERES spheres or more
            than MAX_MATERIALS distinct materials.
    """
    count = len(scene)
    if count > MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    materials = scene.materials()
    if len(materials) > MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    centers = np.zeros((MAX_SPHERES, 3), dtype=np.float32)
    radii = np.zeros(MAX_SPHERES, dtype=np.float32)
    material_ids = np.full(MAX_SPHERES, -1, dtype=np.int32)
    if count:
        centers[:count] = [sphere.center for sphere in scene]
        radii[:count] = [sphere.radius for sphere in scene]
        material_ids[:count] = scene.material_ids()

    load_materials(materials)
    sphere_centers.from_numpy(centers)
    sphere_radii.from_numpy(radii)
    sphere_material_ids.from_numpy(material_ids)
    num_spheres[None] = count


def get_sphere_count() -> int:
    """Get the number of spheres on the device."""
    return int(num_spheres[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        face=int(Face.FRONT),
        material_id=-1,
    )


@ti.func
def _with_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        face=rec.face,
        material_id=material_id,
    )


@ti.func
def hit_world(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest sphere hit by a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Smallest accepted ray parameter.
        t_max: Largest accepted ray parameter.

    Returns:
        The nearest hit, or a record with hit == 0.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = make_sphere(sphere_centers[i], sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _with_material(rec, sphere_material_ids[i])

    return result
