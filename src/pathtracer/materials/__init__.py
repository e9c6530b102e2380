"""Materials module for light scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick reflectance)

Each material provides:
    - A frozen dataclass describing it on the host (validated on construction)
    - A scatter function returning (direction, attenuation, did_scatter, state)
    - A registry of Taichi fields filled when a scene is uploaded

All scatter computations are Taichi functions and take the generator state
explicitly.
"""

from .dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_index,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "Lambertian",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "Metal",
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "Dielectric",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_index",
    "will_reflect",
]
