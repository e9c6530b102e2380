"""Ray data structure and vector utilities for Monte Carlo path tracing.

This module provides the fundamental Ray dataclass and the 3-component vector
toolkit shared by geometry, materials and the camera. Points, directions and
linear colors all use the same taichi.math.vec3 type.

Random helpers take the generator state explicitly (see core.sampler) and
return (value, new_state), so every stochastic call site is reproducible.

A small host-side section at the end mirrors the pieces the camera needs in
plain NumPy (float64), where invalid input can raise immediately.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero for near_zero()
NEAR_ZERO_EPSILON = 1e-8

# Rejection sampling gives up after this many candidates. The acceptance
# rates are ~52% (ball) and ~79% (disk), so the limit is never reached
# in practice.
MAX_REJECTION_TRIES = 64

# Ball samples shorter than this are rejected before normalization
MIN_SAMPLE_LENGTH_SQUARED = 1e-12


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). It does not need
            to be normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. No range check is applied.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared magnitude of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean magnitude of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Normalizing a zero-length vector is an invariant violation. The check
    is a Taichi assert, so it fires when Taichi runs with debug=True;
    callers must never pass a zero vector.

    Args:
        v: The input vector (must be non-zero).

    Returns:
        A unit vector in the same direction as v.
    """
    assert length_squared(v) > 0.0, "cannot normalize a zero-length vector"
    return v / length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is close to zero in every component.

    Components are compared by absolute value, so vectors with large
    negative components are not mistaken for zero.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror a vector about a unit normal.

    Computes v - 2 (v . n) n. Applying it twice with the same normal gives
    back the original vector.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The unit surface normal.

    Returns:
        The reflected direction.
    """
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(v: vec3, n: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit vector through a surface using Snell's law.

    The result is split into the component perpendicular to the normal,
    eta * (v + cos_theta n), and the parallel component,
    -sqrt(|1 - |perp|^2|) n.

    Total internal reflection is not detected here; callers must test
    eta_ratio * sin_theta > 1 first.

    Args:
        v: The incoming unit direction.
        n: The unit normal, on the same side as the incoming ray.
        eta_ratio: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction.
    """
    cos_theta = ti.min(dot(-v, n), 1.0)
    r_out_perp = eta_ratio * (v + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, eta_ratio: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    r0 = ((1 - n) / (1 + n))^2
    R  = r0 + (1 - r0) (1 - cos)^5

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        eta_ratio: Ratio of refractive indices.

    Returns:
        The reflection probability in [0, 1].
    """
    r0 = (1.0 - eta_ratio) / (1.0 + eta_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def lerp(a: vec3, b: vec3, t: ti.f32) -> vec3:
    """Linearly blend from a (t=0) to b (t=1)."""
    return (1.0 - t) * a + t * b


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vector(state: ti.u32, low: ti.f32, high: ti.f32):
    """Draw a vector with each component uniform in [low, high).

    Args:
        state: The generator state.
        low: Inclusive lower bound per component.
        high: Exclusive upper bound per component.

    Returns:
        A tuple (vector, new_state).
    """
    x, s = random_range(state, low, high)
    y, s = random_range(s, low, high)
    z, s = random_range(s, low, high)
    return vec3(x, y, z), s


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a uniform point in the closed unit ball by rejection sampling.

    Args:
        state: The generator state.

    Returns:
        A tuple (point, new_state) with |point| <= 1.
    """
    s = state
    result = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p, s = random_vector(s, -1.0, 1.0)
            if length_squared(p) <= 1.0:
                result = p
                found = True
    return result, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a uniformly distributed unit vector.

    Normalizes a unit-ball sample. Candidates too close to the origin to
    normalize safely are rejected along with those outside the ball.

    Args:
        state: The generator state.

    Returns:
        A tuple (unit_vector, new_state).
    """
    s = state
    result = vec3(0.0, 0.0, 1.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p, s = random_vector(s, -1.0, 1.0)
            lensq = length_squared(p)
            if MIN_SAMPLE_LENGTH_SQUARED < lensq <= 1.0:
                result = p / ti.sqrt(lensq)
                found = True
    return result, s


@ti.func
def random_on_hemisphere(normal: vec3, state: ti.u32):
    """Draw a unit vector in the hemisphere around a normal.

    Args:
        normal: The surface normal defining the hemisphere.
        state: The generator state.

    Returns:
        A tuple (unit_vector, new_state) with dot(unit_vector, normal) >= 0.
    """
    on_sphere, s = random_unit_vector(state)
    result = on_sphere
    if dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a uniform point in the unit disk of the xy-plane.

    Used for thin-lens (depth of field) sampling.

    Args:
        state: The generator state.

    Returns:
        A tuple (point, new_state) with point = (x, y, 0), x^2 + y^2 < 1.
    """
    s = state
    result = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            x, s = random_range(s, -1.0, 1.0)
            y, s = random_range(s, -1.0, 1.0)
            if x * x + y * y < 1.0:
                result = vec3(x, y, 0.0)
                found = True
    return result, s


# =============================================================================
# Host-side Helpers (NumPy, float64)
# =============================================================================


def to_array(values: Sequence[float]) -> npt.NDArray[np.float64]:
    """Convert a 3-sequence to a float64 NumPy vector.

    Raises:
        ValueError: If the input does not have exactly three finite components.
    """
    array = np.asarray(values, dtype=np.float64)
    if array.shape != (3,):
        raise ValueError(f"Expected 3 components, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise ValueError(f"Vector components must be finite, got {tuple(array)}")
    return array


def unit_vector(values: Sequence[float]) -> npt.NDArray[np.float64]:
    """Normalize a vector on the host, failing fast on zero length.

    Raises:
        ValueError: If the vector has zero magnitude.
    """
    array = to_array(values)
    magnitude = float(np.linalg.norm(array))
    if magnitude == 0.0:
        raise ValueError(f"Cannot normalize zero-length vector {tuple(array)}")
    return array / magnitude
