"""Counter-based random number generation for Monte Carlo sampling.

This module provides the random number generator used by every stochastic
decision in the renderer: pixel jitter, lens sampling, diffuse bounce
directions, metal fuzz and the dielectric reflect/refract choice.

The generator state is a single 32-bit unsigned integer that is passed
explicitly into every sampling function, which returns the drawn value
together with the advanced state:

    value, state = next_float(state)

There is no hidden global state. Each (pixel, sample) pair derives its own
stream with seed_stream(), so the image depends only on the seed and never
on how rows are batched or how many threads execute a kernel.

Generator:
    state_{n+1} = state_n * 1664525 + 1013904223  (mod 2^32)
    output_n    = wang_hash(state_{n+1})

Floats use the top 24 bits of the output, giving uniform values in [0, 1)
that are exactly representable as f32.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import seed_stream, next_float
    >>> # Within a Taichi kernel:
    >>> # state = seed_stream(seed, pixel_index, sample_index)
    >>> # u, state = next_float(state)
"""

import taichi as ti

# Numerical Recipes LCG constants (full period modulo 2^32)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223

# 2^-24, maps a 24-bit integer onto [0, 1)
INV_2_24 = 1.0 / 16777216.0

SEED_MASK = 0xFFFFFFFF


def normalize_seed(seed: int) -> int:
    """Reduce an arbitrary Python integer seed to the 32-bit kernel range.

    Args:
        seed: Any integer (negative values wrap).

    Returns:
        The seed modulo 2^32, suitable for a ti.u32 kernel argument.
    """
    return int(seed) & SEED_MASK


@ti.func
def _u32(value):
    return ti.cast(value, ti.u32)


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash.

    Args:
        key: The value to hash.

    Returns:
        A well-mixed 32-bit value.
    """
    k = _u32(key)
    k = (k ^ _u32(61)) ^ (k >> _u32(16))
    k = k * _u32(9)
    k = k ^ (k >> _u32(4))
    k = k * _u32(0x27D4EB2D)
    k = k ^ (k >> _u32(15))
    return k


@ti.func
def seed_stream(seed: ti.u32, pixel_index: ti.u32, sample_index: ti.u32) -> ti.u32:
    """Derive the initial state of a private stream.

    Cascaded hash: wang(seed ^ wang(pixel ^ wang(sample))).

    Args:
        seed: The render seed.
        pixel_index: Row-major pixel index (row * width + column).
        sample_index: Index of the sample within the pixel.

    Returns:
        The initial generator state for this (pixel, sample) pair.
    """
    inner = wang_hash(_u32(sample_index))
    middle = wang_hash(_u32(pixel_index) ^ inner)
    return wang_hash(_u32(seed) ^ middle)


@ti.func
def next_u32(state: ti.u32):
    """Advance the generator and draw 32 random bits.

    Args:
        state: The current generator state.

    Returns:
        A tuple (bits, new_state).
    """
    new_state = _u32(_u32(state) * _u32(LCG_MULTIPLIER) + _u32(LCG_INCREMENT))
    return wang_hash(new_state), new_state


@ti.func
def next_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple (value, new_state).
    """
    bits, new_state = next_u32(state)
    value = ti.cast(bits >> _u32(8), ti.f32) * INV_2_24
    return value, new_state


@ti.func
def random_range(state: ti.u32, low: ti.f32, high: ti.f32):
    """Draw a uniform float in [low, high).

    Args:
        state: The current generator state.
        low: Inclusive lower bound.
        high: Exclusive upper bound.

    Returns:
        A tuple (value, new_state).
    """
    u, new_state = next_float(state)
    return low + (high - low) * u, new_state
