"""Material variants, the device material registry and scatter dispatch.

The material set is closed: Lambertian, Metal and Dielectric. On the Python
side each variant is a frozen dataclass, so materials are immutable values
that many spheres can share. On the device side every registered material is
one record in a structure-of-arrays table, tagged with its MaterialKind, and
scatter() switches over the tag.

Example:
    >>> from weekend_tracer.materials.material import Dielectric, Lambertian, Metal
    >>> ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    >>> mirror = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.0)
    >>> glass = Dielectric(refraction_index=1.5)
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

import numpy as np
import taichi as ti
import taichi.math as tm

from weekend_tracer.core.vec3 import as_vec3_tuple
from weekend_tracer.materials.dielectric import scatter_dielectric
from weekend_tracer.materials.lambertian import scatter_lambertian
from weekend_tracer.materials.metal import scatter_metal

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialKind(IntEnum):
    """Tag of the material variant, used for dispatch in device code."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


def _validate_albedo(albedo: Sequence[float]) -> tuple[float, float, float]:
    color = as_vec3_tuple(albedo, "albedo")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return color


@dataclass(frozen=True)
class Lambertian:
    """Ideal diffuse material.

    Attributes:
        albedo: Diffuse reflectance color (R, G, B), each in [0, 1].
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", _validate_albedo(self.albedo))

    @property
    def kind(self) -> MaterialKind:
        return MaterialKind.LAMBERTIAN


@dataclass(frozen=True)
class Metal:
    """Reflective material with optional blur.

    Attributes:
        albedo: Reflective color (R, G, B), each in [0, 1].
        fuzz: Blur radius in [0, 1]. 0 = perfect mirror.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", _validate_albedo(self.albedo))
        fuzz = float(self.fuzz)
        if not 0.0 <= fuzz <= 1.0:
            raise ValueError(
                f"Fuzz = {fuzz} is outside [0, 1]. "
                "Fuzz must be between 0 (perfect mirror) and 1 (maximum blur)."
            )
        object.__setattr__(self, "fuzz", fuzz)

    @property
    def kind(self) -> MaterialKind:
        return MaterialKind.METAL


@dataclass(frozen=True)
class Dielectric:
    """Clear refractive material such as glass or water.

    Attributes:
        refraction_index: Index of refraction relative to the surrounding
            medium. Common values: water 1.33, glass 1.5, diamond 2.4.
            Values below 1 model e.g. an air bubble inside water.
    """

    refraction_index: float = 1.5

    def __post_init__(self) -> None:
        ir = float(self.refraction_index)
        if not math.isfinite(ir) or ir <= 0.0:
            raise ValueError(f"Index of refraction = {ir} must be a finite value > 0.")
        object.__setattr__(self, "refraction_index", ir)

    @property
    def kind(self) -> MaterialKind:
        return MaterialKind.DIELECTRIC


Material = Union[Lambertian, Metal, Dielectric]


def material_to_dict(material: Material) -> dict[str, Any]:
    """Describe a material as a plain dictionary (JSON friendly)."""
    if isinstance(material, Lambertian):
        return {"type": "lambertian", "albedo": list(material.albedo)}
    if isinstance(material, Metal):
        return {"type": "metal", "albedo": list(material.albedo), "fuzz": material.fuzz}
    if isinstance(material, Dielectric):
        return {"type": "dielectric", "refraction_index": material.refraction_index}
    raise TypeError(f"Unknown material: {material!r}")


def material_from_dict(data: Mapping[str, Any]) -> Material:
    """Build a material from the dictionary form used by material_to_dict().

    Raises:
        ValueError: If the type is unknown or a parameter is invalid.
    """
    mat_type = str(data.get("type", "")).lower()
    if mat_type == "lambertian":
        return Lambertian(albedo=data.get("albedo", (0.5, 0.5, 0.5)))
    if mat_type == "metal":
        return Metal(albedo=data.get("albedo", (0.8, 0.8, 0.8)), fuzz=data.get("fuzz", 0.0))
    if mat_type == "dielectric":
        return Dielectric(refraction_index=data.get("refraction_index", 1.5))
    raise ValueError(f"Unknown material type: {mat_type}")


# =============================================================================
# Material Field Storage (device-side registry)
# =============================================================================

# Maximum number of distinct materials in a loaded scene
MAX_MATERIALS = 2048

# One record per material: the tag plus the union of all variant parameters
material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_ir = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear the material registry.

    Resets the count to zero; stale records are overwritten by the next load.
    """
    num_materials[None] = 0


def load_materials(materials: Sequence[Material]) -> None:
    """Replace the registry contents with the given materials.

    Material ids are positions in the sequence.

    Args:
        materials: The materials to upload, in id order.

    Raises:
        RuntimeError: If more than MAX_MATERIALS materials are given.
    """
    count = len(materials)
    if count > MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    kinds = np.zeros(MAX_MATERIALS, dtype=np.int32)
    albedos = np.zeros((MAX_MATERIALS, 3), dtype=np.float32)
    fuzz = np.zeros(MAX_MATERIALS, dtype=np.float32)
    iors = np.ones(MAX_MATERIALS, dtype=np.float32)

    for idx, material in enumerate(materials):
        kinds[idx] = int(material.kind)
        if isinstance(material, (Lambertian, Metal)):
            albedos[idx] = material.albedo
        if isinstance(material, Metal):
            fuzz[idx] = material.fuzz
        if isinstance(material, Dielectric):
            iors[idx] = material.refraction_index

    material_kinds.from_numpy(kinds)
    material_albedos.from_numpy(albedos)
    material_fuzz.from_numpy(fuzz)
    material_ir.from_numpy(iors)
    num_materials[None] = count


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def scatter(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    face: ti.i32,
):
    """Dispatch to the scatter function of the material's variant.

    Args:
        material_id: Index into the material registry.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal facing the incoming ray.
        face: Face.FRONT or Face.BACK as an integer.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 when the ray is absorbed.
    """
    kind = material_kinds[material_id]

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if kind == int(MaterialKind.LAMBERTIAN):
        scattered_direction, attenuation = scatter_lambertian(
            material_albedos[material_id], normal
        )
        did_scatter = 1

    elif kind == int(MaterialKind.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal(
            material_albedos[material_id],
            material_fuzz[material_id],
            incident_direction,
            normal,
        )

    elif kind == int(MaterialKind.DIELECTRIC):
        scattered_direction, attenuation = scatter_dielectric(
            material_ir[material_id], incident_direction, normal, face
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter
