"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters incoming light around the surface normal.
The scattered direction is the normal plus a uniformly distributed unit
vector, which produces the cos(theta) distribution of an ideal diffuse
reflector without an explicit PDF weight:

    direction = normal + random_unit_vector()

If the random vector almost exactly cancels the normal, the sum would be a
degenerate zero-length direction; the normal is used instead.

Attenuation is always the albedo, and a Lambertian surface never absorbs a
ray outright.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, random_unit_vector, to_array

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    """Check that every albedo component lies in [0, 1].

    Args:
        albedo: The (R, G, B) reflectance.

    Returns:
        The albedo as a tuple of floats.

    Raises:
        ValueError: If a component is outside [0, 1].
    """
    values = to_array(albedo)
    for i, component in enumerate(values):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True, eq=False)
class Lambertian:
    """Diffuse material description.

    Instances are compared by identity, so one object shared by several
    spheres is stored once in the material table.

    Attributes:
        albedo: Per-channel reflectance, each component in [0, 1].
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The surface reflectance (RGB).
        normal: The unit surface normal, facing the incoming ray.
        state: The generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        did_scatter is always 1.
    """
    offset, s = random_unit_vector(state)
    scatter_direction = normal + offset

    # Catch degenerate scatter direction
    if near_zero(scatter_direction):
        scatter_direction = normal

    return scatter_direction, albedo, 1, s


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material albedos
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Reset the Lambertian registry count to zero."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse color as (R, G, B), each component in [0, 1].

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    r, g, b = validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(r, g, b)
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, state: ti.u32):
    """Scatter off a registered Lambertian material.

    Args:
        material_idx: The type-local index of the material.
        normal: The unit surface normal, facing the incoming ray.
        state: The generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, normal, state)
