"""Dielectric (glass/water) material implementation.

This module implements the dielectric material, which models transparent
materials like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) > 1

The material randomly chooses between reflection and refraction: it reflects
when refraction is impossible or when the Schlick reflectance exceeds a
uniform draw from [0, 1). Attenuation is always white.

An index below 1 describes a medium less dense than its surroundings, such
as an air bubble inside glass (1 / 1.5).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_dielectric(
    >>> #     refractive_index, incident_dir, normal, front_face, state
    >>> # )
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    dot,
    normalize,
    reflect,
    refract,
    schlick_reflectance,
)
from pathtracer.core.sampler import next_float

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_refractive_index(refractive_index: float) -> float:
    """Check that a refractive index is finite and strictly positive.

    Raises:
        ValueError: If the index is not a positive finite number.
    """
    value = float(refractive_index)
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"Refractive index must be positive, got {refractive_index}")
    return value


@dataclass(frozen=True, eq=False)
class Dielectric:
    """Dielectric material description.

    Attributes:
        refractive_index: Index of refraction relative to the enclosing
            medium. Common values:
            - Air pocket in glass: 1 / 1.5
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    refractive_index: float

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "refractive_index", validate_refractive_index(self.refractive_index)
        )


@ti.func
def will_reflect(cos_theta: ti.f32, eta_ratio: ti.f32, threshold: ti.f32) -> ti.i32:
    """Decide between reflection and refraction.

    Args:
        cos_theta: Cosine of the incidence angle, in [0, 1].
        eta_ratio: Ratio of refractive indices (incident / transmitted).
        threshold: Uniform random value in [0, 1).

    Returns:
        1 if the ray reflects, 0 if it refracts.
    """
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    cannot_refract = eta_ratio * sin_theta > 1.0
    result = 0
    if cannot_refract or schlick_reflectance(cos_theta, eta_ratio) > threshold:
        result = 1
    return result


@ti.func
def scatter_dielectric(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface, 0 if it
            travels inside the material.
        state: The generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        Attenuation is white and did_scatter is always 1.
    """
    eta_ratio = refractive_index
    if front_face == 1:
        eta_ratio = 1.0 / refractive_index

    unit_direction = normalize(incident_direction)
    cos_theta = ti.min(dot(-unit_direction, normal), 1.0)

    threshold, s = next_float(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if will_reflect(cos_theta, eta_ratio, threshold):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, eta_ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0), 1, s


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric refractive indices
dielectric_indices = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Reset the dielectric registry count to zero."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refractive_index: The index of refraction (strictly positive).

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is not positive.
    """
    value = validate_refractive_index(refractive_index)

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_indices[idx] = value
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_index(material_idx: ti.i32) -> ti.f32:
    return dielectric_indices[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Scatter off a registered dielectric material.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
    """
    refractive_index = get_dielectric_index(material_idx)
    return scatter_dielectric(
        refractive_index, incident_direction, normal, front_face, state
    )
