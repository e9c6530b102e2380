"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure, vector math and random direction sampling
    sampler: Counter-based random number generation with explicit state
    color: Gamma correction and 8-bit pixel encoding
    integrator: Light transport kernel and render target
    renderer: render() / render_image() entry points

All compute-intensive operations are Taichi functions and kernels.
"""

from .color import (
    CLAMP_MAX,
    GAMMA,
    MAX_CHANNEL_VALUE,
    encode_color,
    encode_image,
    linear_to_gamma,
)
from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    lerp,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_on_hemisphere,
    random_unit_vector,
    random_vector,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    to_array,
    unit_vector,
    vec3,
)
from .sampler import (
    next_float,
    next_u32,
    normalize_seed,
    random_range,
    seed_stream,
    wang_hash,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.renderer.

__all__ = [
    # Ray and vectors
    "Ray",
    "ray_at",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "lerp",
    "random_vector",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_on_hemisphere",
    "random_in_unit_disk",
    "to_array",
    "unit_vector",
    # Sampler
    "wang_hash",
    "seed_stream",
    "next_u32",
    "next_float",
    "random_range",
    "normalize_seed",
    # Color
    "GAMMA",
    "CLAMP_MAX",
    "MAX_CHANNEL_VALUE",
    "linear_to_gamma",
    "encode_color",
    "encode_image",
]
