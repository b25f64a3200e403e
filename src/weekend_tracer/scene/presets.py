"""Ready-made scenes with matching cameras.

Each preset returns a Scene and has a companion function returning the
CameraParams it was composed for.

- ground_and_sphere_scene: a large diffuse ground and one colored sphere.
- three_spheres_scene: diffuse, hollow glass and metal spheres side by side.
- random_scene: a field of small random spheres around three large ones.

Example:
    >>> from weekend_tracer.scene.presets import random_scene, random_scene_camera
    >>> scene = random_scene(seed=7)
    >>> camera = random_scene_camera(image_width=300)
"""

from dataclasses import dataclass

import numpy as np

from weekend_tracer.camera.thin_lens import CameraParams
from weekend_tracer.materials.material import Dielectric, Lambertian, Material, Metal
from weekend_tracer.scene.world import Scene, SphereSpec

# =============================================================================
# Shared Materials
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.7, 0.3, 0.3)
GLASS_IOR = 1.5
METAL_ALBEDO = (0.8, 0.6, 0.2)

# The ground sphere is large enough to look like a plane near the camera
GROUND_RADIUS = 100.0


def ground_and_sphere_scene() -> Scene:
    """A ground sphere and one diffuse sphere in front of the camera."""
    return Scene.of(
        SphereSpec(center=(0.0, -100.5, -1.0), radius=GROUND_RADIUS, material=Lambertian(GROUND_ALBEDO)),
        SphereSpec(center=(0.0, 0.0, -1.0), radius=0.5, material=Lambertian(CENTER_ALBEDO)),
    )


def ground_and_sphere_camera(image_width: int = 400, aspect_ratio: float = 16.0 / 9.0) -> CameraParams:
    return CameraParams(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vfov_degrees=90.0,
        aspect_ratio=aspect_ratio,
        image_width=image_width,
    )


def three_spheres_scene() -> Scene:
    """Diffuse, glass and metal spheres on a ground sphere.

    The glass sphere on the left is a hollow bubble: an outer shell and an
    inner sphere of negative radius sharing the same center.
    """
    glass = Dielectric(GLASS_IOR)
    return Scene.of(
        SphereSpec(center=(0.0, -100.5, -1.0), radius=GROUND_RADIUS, material=Lambertian(GROUND_ALBEDO)),
        SphereSpec(center=(0.0, 0.0, -1.0), radius=0.5, material=Lambertian((0.1, 0.2, 0.5))),
        SphereSpec(center=(-1.0, 0.0, -1.0), radius=0.5, material=glass),
        SphereSpec(center=(-1.0, 0.0, -1.0), radius=-0.4, material=glass),
        SphereSpec(center=(1.0, 0.0, -1.0), radius=0.5, material=Metal(METAL_ALBEDO, fuzz=0.0)),
    )


def three_spheres_camera(image_width: int = 400, aspect_ratio: float = 16.0 / 9.0) -> CameraParams:
    look_from = (3.0, 3.0, 2.0)
    look_at = (0.0, 0.0, -1.0)
    focus = float(np.linalg.norm(np.subtract(look_from, look_at)))
    return CameraParams(
        look_from=look_from,
        look_at=look_at,
        vfov_degrees=20.0,
        aspect_ratio=aspect_ratio,
        aperture=2.0,
        focus_distance=focus,
        image_width=image_width,
    )


# =============================================================================
# Random Scene
# =============================================================================


@dataclass(frozen=True)
class RandomSceneParams:
    """Parameters of the random sphere field.

    Attributes:
        grid_extent: Small spheres are placed on the integer grid
            [-grid_extent, grid_extent) in x and z.
        small_radius: Radius of the small spheres.
        diffuse_fraction: Probability that a small sphere is diffuse.
        metal_fraction: Probability that a small sphere is metal; the rest
            are glass.
    """

    grid_extent: int = 11
    small_radius: float = 0.2
    diffuse_fraction: float = 0.8
    metal_fraction: float = 0.15

    def __post_init__(self) -> None:
        if self.grid_extent < 0:
            raise ValueError(f"grid_extent must be >= 0, got {self.grid_extent}")
        if self.diffuse_fraction < 0.0 or self.metal_fraction < 0.0:
            raise ValueError("Material fractions must be >= 0")
        if self.diffuse_fraction + self.metal_fraction > 1.0:
            raise ValueError("diffuse_fraction + metal_fraction must not exceed 1")


# Small spheres are not placed this close to the large metal sphere
_KEEP_OUT_CENTER = np.array([4.0, 0.2, 0.0])
_KEEP_OUT_RADIUS = 0.9


def random_scene(seed: int | None = None, params: RandomSceneParams | None = None) -> Scene:
    """The classic final scene: many small random spheres and three large ones.

    Args:
        seed: Seed for the NumPy generator. The same seed gives the same scene.
        params: Layout parameters. Defaults to RandomSceneParams().

    Returns:
        The scene, ground first, small spheres next, large spheres last.
    """
    params = params or RandomSceneParams()
    rng = np.random.default_rng(seed)

    spheres: list[SphereSpec] = [
        SphereSpec(center=(0.0, -1000.0, 0.0), radius=1000.0, material=Lambertian((0.5, 0.5, 0.5)))
    ]

    for a in range(-params.grid_extent, params.grid_extent):
        for b in range(-params.grid_extent, params.grid_extent):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), params.small_radius, b + 0.9 * rng.random()])

            if np.linalg.norm(center - _KEEP_OUT_CENTER) <= _KEEP_OUT_RADIUS:
                continue

            material: Material
            if choose_mat < params.diffuse_fraction:
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(tuple(albedo))
            elif choose_mat < params.diffuse_fraction + params.metal_fraction:
                albedo = rng.uniform(0.5, 1.0, 3)
                material = Metal(tuple(albedo), fuzz=float(rng.uniform(0.0, 0.5)))
            else:
                material = Dielectric(GLASS_IOR)

            spheres.append(SphereSpec(center=tuple(center), radius=params.small_radius, material=material))

    spheres.append(SphereSpec(center=(0.0, 1.0, 0.0), radius=1.0, material=Dielectric(GLASS_IOR)))
    spheres.append(SphereSpec(center=(-4.0, 1.0, 0.0), radius=1.0, material=Lambertian((0.4, 0.2, 0.1))))
    spheres.append(SphereSpec(center=(4.0, 1.0, 0.0), radius=1.0, material=Metal((0.7, 0.6, 0.5), fuzz=0.0)))

    return Scene(spheres=tuple(spheres))


def random_scene_camera(image_width: int = 400, aspect_ratio: float = 3.0 / 2.0) -> CameraParams:
    return CameraParams(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        vfov_degrees=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_distance=10.0,
        image_width=image_width,
    )


PRESETS = {
    "ground": (ground_and_sphere_scene, ground_and_sphere_camera),
    "three_spheres": (three_spheres_scene, three_spheres_camera),
    "random": (random_scene, random_scene_camera),
}
