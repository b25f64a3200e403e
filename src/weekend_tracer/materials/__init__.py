"""Materials module: scattering models and the material registry.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    material: Variant types, device registry and scatter dispatch

All scatter functions are Taichi functions returning the scattered direction
and the attenuation; Metal can also absorb the ray.
"""

from .dielectric import (
    cannot_refract,
    fresnel_reflectance,
    refraction_ratio_for,
    scatter_dielectric,
)
from .lambertian import scatter_lambertian
from .material import (
    MAX_MATERIALS,
    Dielectric,
    Lambertian,
    Material,
    MaterialKind,
    Metal,
    clear_materials,
    get_material_count,
    load_materials,
    material_from_dict,
    material_to_dict,
    scatter,
)
from .metal import scatter_metal

__all__ = [
    # Variants
    "Lambertian",
    "Metal",
    "Dielectric",
    "Material",
    "MaterialKind",
    "material_from_dict",
    "material_to_dict",
    # Registry
    "MAX_MATERIALS",
    "load_materials",
    "clear_materials",
    "get_material_count",
    "scatter",
    # Scatter functions
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "refraction_ratio_for",
    "cannot_refract",
    "fresnel_reflectance",
]
