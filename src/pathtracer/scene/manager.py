"""Host-side scene description and upload to Taichi fields.

A Scene is an ordered list of spheres, each referencing a material object.
Materials are plain frozen dataclasses (Lambertian, Metal, Dielectric) and
may be shared by any number of spheres. Nothing touches Taichi until
upload() is called, which:

- clears the sphere storage and every material registry,
- registers each distinct material object once (by identity), assigning a
  unified material id that maps to (material_type, type_local_index),
- writes the spheres in insertion order.

The path tracer dispatches on the material type stored for each id.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials import Lambertian, Metal
    >>> from pathtracer.scene.manager import Scene
    >>> scene = Scene()
    >>> ground = Lambertian((0.8, 0.8, 0.0))
    >>> scene.add_sphere((0, -100.5, -1), 100, ground)
    >>> scene.add_sphere((1, 0, -1), 0.5, Metal((0.8, 0.6, 0.2), fuzz=1.0))
    >>> scene.upload()
"""

import logging
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

import taichi as ti

from pathtracer.core.ray import to_array
from pathtracer.materials.dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

Material = Union[Lambertian, Metal, Dielectric]


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 3072  # 1024 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


def clear_scene_data() -> None:
    """Clear sphere storage, material registries and the material table."""
    clear_scene()
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    _clear_material_tracking()


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass(frozen=True)
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        material: The material object that was registered.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    material: Material


def register_material(material: Material) -> MaterialInfo:
    """Store a material in its type registry and assign a unified id.

    Args:
        material: A Lambertian, Metal or Dielectric instance.

    Returns:
        The MaterialInfo describing where the material was stored.

    Raises:
        TypeError: If the object is not a supported material.
        RuntimeError: If a registry or the material table is full.
    """
    if isinstance(material, Lambertian):
        material_type = MaterialType.LAMBERTIAN
        type_index = add_lambertian_material(material.albedo)
    elif isinstance(material, Metal):
        material_type = MaterialType.METAL
        type_index = add_metal_material(material.albedo, material.fuzz)
    elif isinstance(material, Dielectric):
        material_type = MaterialType.DIELECTRIC
        type_index = add_dielectric_material(material.refractive_index)
    else:
        raise TypeError(f"Unsupported material type: {type(material).__name__}")

    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1

    return MaterialInfo(
        material_id=material_id,
        material_type=material_type,
        type_index=type_index,
        material=material,
    )


@dataclass(frozen=True)
class SphereInfo:
    """A sphere in the scene description.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere, strictly positive.
        material: The material shared by reference with other spheres.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        center = to_array(self.center)
        radius = float(self.radius)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        if not isinstance(self.material, (Lambertian, Metal, Dielectric)):
            raise TypeError(f"Unsupported material type: {type(self.material).__name__}")
        object.__setattr__(self, "center", (float(center[0]), float(center[1]), float(center[2])))
        object.__setattr__(self, "radius", radius)


class Scene:
    """Ordered collection of spheres with shared materials.

    Insertion order decides which sphere wins when two report exactly the
    same intersection parameter (the earlier one).

    Example:
        >>> scene = Scene()
        >>> glass = Dielectric(1.5)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_sphere((-1, 0, -1), 0.4, Dielectric(1.0 / 1.5))
        >>> len(scene)
        2
    """

    def __init__(self, spheres: Iterable[SphereInfo] = ()) -> None:
        self._spheres: list[SphereInfo] = []
        for sphere in spheres:
            self.add(sphere)

    def add(self, sphere: SphereInfo) -> SphereInfo:
        """Append a sphere.

        Raises:
            RuntimeError: If the scene already holds MAX_SPHERES spheres.
        """
        if len(self._spheres) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
        self._spheres.append(sphere)
        return sphere

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Material,
    ) -> SphereInfo:
        """Create and append a sphere.

        Raises:
            ValueError: If the radius is not positive or the center invalid.
            RuntimeError: If the scene is full.
        """
        return self.add(SphereInfo(center=center, radius=radius, material=material))

    def clear(self) -> None:
        self._spheres.clear()

    def __len__(self) -> int:
        return len(self._spheres)

    def __iter__(self) -> Iterator[SphereInfo]:
        return iter(self._spheres)

    @property
    def spheres(self) -> tuple[SphereInfo, ...]:
        return tuple(self._spheres)

    @property
    def materials(self) -> list[Material]:
        """Distinct material objects in order of first use."""
        seen: set[int] = set()
        unique: list[Material] = []
        for sphere in self._spheres:
            if id(sphere.material) not in seen:
                seen.add(id(sphere.material))
                unique.append(sphere.material)
        return unique

    def upload(self) -> list[MaterialInfo]:
        """Write the scene into the Taichi fields used by the renderer.

        Any previously uploaded scene is replaced.

        Returns:
            One MaterialInfo per distinct material, in material id order.

        Raises:
            RuntimeError: If a capacity limit is exceeded.
        """
        clear_scene_data()

        infos: list[MaterialInfo] = []
        material_ids: dict[int, int] = {}
        for material in self.materials:
            info = register_material(material)
            material_ids[id(material)] = info.material_id
            infos.append(info)

        for sphere in self._spheres:
            add_sphere(sphere.center, sphere.radius, material_ids[id(sphere.material)])

        logger.info(
            "Uploaded scene: %d spheres, %d materials",
            get_sphere_count(),
            len(infos),
        )
        return infos
