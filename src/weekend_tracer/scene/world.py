"""Immutable scene description.

A Scene is an ordered tuple of SphereSpec values. It is built once per render
run and then only read: every worker of the run sees the same object, and
nothing ever mutates it, so it can be shared freely across threads.

Example:
    >>> from weekend_tracer.materials import Lambertian, Metal
    >>> from weekend_tracer.scene.world import Scene, SphereSpec
    >>> ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    >>> scene = Scene.of(
    ...     SphereSpec(center=(0.0, -100.5, -1.0), radius=100.0, material=ground),
    ...     SphereSpec(center=(0.0, 0.0, -1.0), radius=0.5, material=Metal((0.8, 0.8, 0.8))),
    ... )
    >>> len(scene)
    2
"""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from weekend_tracer.core.vec3 import as_vec3_tuple
from weekend_tracer.materials.material import (
    Material,
    material_from_dict,
    material_to_dict,
)


@dataclass(frozen=True)
class SphereSpec:
    """A sphere in the scene description.

    Attributes:
        center: The center point (x, y, z).
        radius: The signed radius. A negative radius keeps the surface but
            flips its normals, which models a hollow shell.
        material: The material of the surface.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3_tuple(self.center, "center"))
        radius = float(self.radius)
        if not math.isfinite(radius):
            raise ValueError(f"Sphere radius must be finite, got {radius}")
        object.__setattr__(self, "radius", radius)

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material": material_to_dict(self.material),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SphereSpec":
        try:
            return cls(
                center=data["center"],
                radius=data["radius"],
                material=material_from_dict(data["material"]),
            )
        except KeyError as e:
            raise ValueError(f"Sphere description is missing {e}") from e


@dataclass(frozen=True)
class Scene:
    """An ordered, read-only collection of spheres.

    Attributes:
        spheres: The spheres, in intersection order.
    """

    spheres: tuple[SphereSpec, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "spheres", tuple(self.spheres))

    @classmethod
    def of(cls, *spheres: SphereSpec) -> "Scene":
        return cls(spheres=spheres)

    def __len__(self) -> int:
        return len(self.spheres)

    def __iter__(self) -> Iterator[SphereSpec]:
        return iter(self.spheres)

    def materials(self) -> list[Material]:
        """Distinct materials in order of first use.

        Equal materials used by several spheres appear once.
        """
        seen: dict[Material, None] = {}
        for sphere in self.spheres:
            seen.setdefault(sphere.material, None)
        return list(seen)

    def material_ids(self) -> list[int]:
        """Index into materials() for every sphere, in sphere order."""
        index = {material: i for i, material in enumerate(self.materials())}
        return [index[sphere.material] for sphere in self.spheres]

    def to_dict(self) -> dict[str, Any]:
        """Describe the scene as a plain dictionary (JSON friendly)."""
        return {"spheres": [sphere.to_dict() for sphere in self.spheres]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scene":
        """Build a scene from the form produced by to_dict().

        Raises:
            ValueError: If a sphere or material description is invalid.
        """
        return cls(spheres=tuple(SphereSpec.from_dict(s) for s in data.get("spheres", [])))
