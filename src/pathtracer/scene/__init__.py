"""Scene module for scene description, upload and ray-scene queries.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    manager: Host-side Scene, material table and upload
    demo: Ready-made scenes paired with camera configurations

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for sphere data
    - A unified material id table mapping to per-type registries
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    Material,
    MaterialInfo,
    MaterialType,
    Scene,
    SphereInfo,
    clear_scene_data,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
    register_material,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "Scene",
    "SphereInfo",
    "Material",
    "MaterialType",
    "MaterialInfo",
    "MAX_MATERIALS",
    "clear_scene_data",
    "register_material",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
]
