"""Metal (specular reflective) material implementation.

This module implements the metal material, which models specular reflection
with optional fuzziness. A fuzz of 0 produces a perfect mirror, larger values
perturb the reflected direction by a random unit vector scaled by the fuzz.

The reflection formula is:
    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal. The fuzzed
direction is R + fuzz * random_unit_vector(). If it points below the
surface the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import dot, random_unit_vector, reflect
from pathtracer.materials.lambertian import validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1]."""
    return min(max(float(fuzz), 0.0), 1.0)


@dataclass(frozen=True, eq=False)
class Metal:
    """Metal material description.

    Attributes:
        albedo: The reflective tint, each component in [0, 1].
        fuzz: Reflection blur. Values outside [0, 1] are clamped at
            construction.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        object.__setattr__(self, "fuzz", clamp_fuzz(self.fuzz))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The reflection blur in [0, 1].
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the incoming ray.
        state: The generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        did_scatter is 0 when the fuzzed direction would re-enter the surface.
    """
    reflected = reflect(incident_direction, normal)
    offset, s = random_unit_vector(state)
    scattered_direction = reflected + fuzz * offset

    did_scatter = 1
    if dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter, s


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B), each component in [0, 1].
        fuzz: The reflection blur. Clamped to [0, 1].

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    r, g, b = validate_albedo(albedo)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(r, g, b)
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Scatter off a registered metal material.

    Looks up albedo and fuzz from the registry and calls scatter_metal.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, normal, state)
