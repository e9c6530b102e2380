"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernel: for every pixel it averages
samples_per_pixel jittered camera rays, each traced through the scene by
bouncing off surfaces according to their materials.

Light transport per sample is an explicit loop rather than recursion. A
throughput (the product of the attenuations met so far) is multiplied in
place at each bounce:

    - miss:      result = throughput * sky_gradient(direction), stop
    - absorbed:  result = black, stop
    - scattered: throughput *= attenuation, continue from the hit point
    - after max_depth intersection tests without a miss: black

This is the same estimate as the recursive formulation
attenuation * trace(scattered, depth - 1).

Every sample owns a private random stream derived from
(seed, pixel index, sample index), so pixels are independent of one another
and of how rows are batched.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import CameraConfig, setup_camera
    >>> from pathtracer.core.integrator import (
    ...     get_image_numpy, render_rows, setup_render_target
    ... )
    >>> config = CameraConfig(image_width=64, samples_per_pixel=4)
    >>> setup_camera(config)
    >>> setup_render_target(config.image_width, config.image_height)
    >>> render_rows(0, config.image_height, 4, 10, seed=0)
    >>> image = get_image_numpy()
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray, get_sky_color
from pathtracer.core.ray import lerp, normalize
from pathtracer.core.sampler import normalize_seed, seed_stream
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Search interval for scene intersection; T_MIN suppresses shadow acne
T_MIN = 0.001
T_MAX = float("inf")

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Averaged linear color per pixel, indexed [row, column] with row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to zero."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing the ray).
        front_face: 1 if hit front face, 0 if back face.
        state: The generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        An unknown material id absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    # Default values
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter, s = scatter_lambertian_by_id(
            type_index, normal, s
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter, s = scatter_metal_by_id(
            type_index, incident_direction, normal, s
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter, s = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, s
        )

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def sky_gradient(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Blends from white at the bottom (unit.y = -1) to the configured sky
    color at the top (unit.y = 1).
    """
    unit_direction = normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return lerp(vec3(1.0, 1.0, 1.0), get_sky_color(), a)


@ti.func
def trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (non-zero, need not be normalized).
        max_depth: Maximum number of intersection tests; 0 returns black.
        state: The generator state.

    Returns:
        A tuple (color, new_state).
    """
    result = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    s = state

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                result = throughput * sky_gradient(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, s = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, s
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return result, s


@ti.func
def render_sample_impl(
    column: ti.i32,
    row: ti.i32,
    width: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Trace one camera sample for a pixel.

    Args:
        column: Pixel column (0 = left).
        row: Pixel row (0 = top).
        width: Image width, used to number pixels row-major.
        sample_index: Index of the sample within the pixel.
        max_depth: Maximum number of bounces.
        seed: The render seed.

    Returns:
        The radiance estimate (RGB) of this sample.
    """
    pixel_index = row * width + column
    state = seed_stream(seed, ti.cast(pixel_index, ti.u32), ti.cast(sample_index, ti.u32))
    origin, direction, state = get_ray(column, row, state)
    color, state = trace_ray(origin, direction, max_depth, state)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render and average all samples for rows [row_start, row_end)."""
    for row, column in ti.ndrange((row_start, row_end), (0, width)):
        total = vec3(0.0, 0.0, 0.0)
        for sample in range(samples):
            total += render_sample_impl(column, row, width, sample, max_depth, seed)
        _color_buffer[row, column] = total * (1.0 / samples)


@ti.kernel
def _render_single_sample(
    column: ti.i32,
    row: ti.i32,
    width: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    return render_sample_impl(column, row, width, sample_index, max_depth, seed)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_end: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int = 0,
) -> None:
    """Render rows [row_start, row_end) into the color buffer.

    The camera and scene must already be uploaded.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.
        samples_per_pixel: Samples averaged per pixel (at least 1).
        max_depth: Maximum number of bounces per sample.
        seed: The render seed; any integer, reduced modulo 2^32.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range or sample count is invalid.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {height}")
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")

    if row_start == row_end:
        return
    _render_rows(row_start, row_end, width, samples_per_pixel, max_depth, normalize_seed(seed))


def render_sample(
    column: int,
    row: int,
    sample_index: int = 0,
    max_depth: int = 50,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace a single sample for a specific pixel.

    Python-callable for testing. For rendering, use render_rows() which
    processes all pixels in parallel. The result equals the contribution of
    that sample inside render_rows().

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, _ = get_image_dimensions()
    color = _render_single_sample(column, row, width, sample_index, max_depth, normalize_seed(seed))

    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns:
        Linear color array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()
    return np.ascontiguousarray(full_image[:height, :width, :], dtype=np.float32)
