"""Thin-lens camera model with depth of field.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (look_from, look_to, view_up)
- Vertical field of view in degrees
- Arbitrary aspect ratios, with the image height derived from the width
- Box-filter jitter for anti-aliasing
- A thin lens (defocus disk) for depth of field

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_to toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport lies on the plane of perfect focus, focus_distance in front of
the camera. Pixel (0, 0) is the top-left corner of the image; rows grow
downward, so the vertical viewport vector is -v.

Geometry is computed once on the host in NumPy (float64) and written into
Taichi fields; get_ray() reads those fields inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import CameraConfig, setup_camera, get_ray
    >>>
    >>> config = CameraConfig(
    ...     image_width=400,
    ...     look_from=(13.0, 2.0, 3.0),
    ...     look_to=(0.0, 0.0, 0.0),
    ...     vfov=20.0,
    ...     lens_angle=0.6,
    ...     focus_distance=10.0,
    ... )
    >>> setup_camera(config)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     origin, direction, state = get_ray(0, 0, state)
"""

import logging
import math
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import random_in_unit_disk, to_array, unit_vector, vec3
from pathtracer.core.sampler import next_float

logger = logging.getLogger(__name__)

# Default sky color at the top of the background gradient
DEFAULT_SKY_COLOR = (0.5, 0.7, 1.0)

Vector = tuple[float, float, float]


def _as_tuple(values) -> Vector:
    array = to_array(values)
    return (float(array[0]), float(array[1]), float(array[2]))


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraConfig:
    """Immutable camera and render settings.

    Defaults:

        aspect_ratio       16 / 9
        image_width        1200
        samples_per_pixel  100
        max_depth          50
        vfov               90 degrees
        look_from          (0, 0, 0)
        look_to            (0, 0, -1)
        view_up            (0, 1, 0)
        lens_angle         0 degrees (depth of field disabled)
        focus_distance     10
        sky_color          (0.5, 0.7, 1.0)

    Attributes:
        aspect_ratio: Width divided by height of the output image.
        image_width: Image width in pixels.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per sample.
        vfov: Vertical field of view in degrees.
        look_from: Camera position in world space.
        look_to: Point the camera is looking at.
        view_up: Up direction used to orient the camera.
        lens_angle: Defocus cone angle in degrees; 0 disables the lens.
        focus_distance: Distance to the plane of perfect focus.
        sky_color: Background color at the top of the gradient.

    Raises:
        ValueError: On invalid values (see __post_init__).
    """

    aspect_ratio: float = 16.0 / 9.0
    image_width: int = 1200
    samples_per_pixel: int = 100
    max_depth: int = 50
    vfov: float = 90.0
    look_from: Vector = (0.0, 0.0, 0.0)
    look_to: Vector = (0.0, 0.0, -1.0)
    view_up: Vector = (0.0, 1.0, 0.0)
    lens_angle: float = 0.0
    focus_distance: float = 10.0
    sky_color: Vector = field(default=DEFAULT_SKY_COLOR)

    def __post_init__(self) -> None:
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if int(self.image_width) != self.image_width or self.image_width < 1:
            raise ValueError(f"image_width must be a positive integer, got {self.image_width}")
        if int(self.samples_per_pixel) != self.samples_per_pixel or self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if int(self.max_depth) != self.max_depth or self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must lie in (0, 180) degrees, got {self.vfov}")
        if not 0.0 <= self.lens_angle < 180.0:
            raise ValueError(f"lens_angle must lie in [0, 180) degrees, got {self.lens_angle}")
        if not math.isfinite(self.focus_distance) or self.focus_distance <= 0.0:
            raise ValueError(f"focus_distance must be positive, got {self.focus_distance}")

        object.__setattr__(self, "image_width", int(self.image_width))
        object.__setattr__(self, "samples_per_pixel", int(self.samples_per_pixel))
        object.__setattr__(self, "max_depth", int(self.max_depth))
        for name in ("look_from", "look_to", "view_up", "sky_color"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))

    @property
    def image_height(self) -> int:
        """Image height in pixels, never less than 1."""
        return max(1, int(round(self.image_width / self.aspect_ratio)))


@dataclass(frozen=True)
class CameraGeometry:
    """Derived viewport geometry, computed once per configuration.

    Attributes:
        image_width: Image width in pixels.
        image_height: Image height in pixels.
        center: Camera position (look_from).
        u: Unit vector pointing right.
        v: Unit vector pointing up.
        w: Unit vector pointing backward (opposite the view direction).
        viewport_width: Viewport width in world units.
        viewport_height: Viewport height in world units.
        pixel00: Center of the top-left pixel.
        pixel_delta_u: Offset from one pixel to the next column.
        pixel_delta_v: Offset from one pixel to the next row.
        lens_radius: Radius of the defocus disk, 0 when disabled.
        lens_u: Horizontal defocus disk radius vector.
        lens_v: Vertical defocus disk radius vector.
    """

    image_width: int
    image_height: int
    center: npt.NDArray[np.float64]
    u: npt.NDArray[np.float64]
    v: npt.NDArray[np.float64]
    w: npt.NDArray[np.float64]
    viewport_width: float
    viewport_height: float
    pixel00: npt.NDArray[np.float64]
    pixel_delta_u: npt.NDArray[np.float64]
    pixel_delta_v: npt.NDArray[np.float64]
    lens_radius: float
    lens_u: npt.NDArray[np.float64]
    lens_v: npt.NDArray[np.float64]

    @property
    def lens_enabled(self) -> bool:
        return self.lens_radius > 0.0


def compute_camera_geometry(config: CameraConfig) -> CameraGeometry:
    """Derive viewport and lens geometry from a configuration.

    Args:
        config: The camera configuration.

    Returns:
        The derived CameraGeometry.

    Raises:
        ValueError: If look_from equals look_to, or view_up is parallel to
            the view direction (the basis cannot be built).
    """
    image_width = config.image_width
    image_height = config.image_height

    # Viewport dimensions on the focus plane
    theta = math.radians(config.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h * config.focus_distance
    viewport_width = viewport_height * image_width / image_height

    look_from = to_array(config.look_from)
    look_to = to_array(config.look_to)
    view_up = to_array(config.view_up)

    # w points from look_to toward look_from (backward)
    w = unit_vector(look_from - look_to)
    # u points right (perpendicular to w and view_up)
    u = unit_vector(np.cross(view_up, w))
    # v points up in the camera's frame
    v = np.cross(w, u)

    # Rows grow downward, so the vertical viewport edge runs along -v
    viewport_u = viewport_width * u
    viewport_v = viewport_height * -v

    pixel_delta_u = viewport_u / image_width
    pixel_delta_v = viewport_v / image_height

    viewport_upper_left = (
        look_from - config.focus_distance * w - viewport_u / 2.0 - viewport_v / 2.0
    )
    pixel00 = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    lens_radius = 0.0
    if config.lens_angle > 0.0:
        lens_radius = config.focus_distance * math.tan(math.radians(config.lens_angle / 2.0))

    return CameraGeometry(
        image_width=image_width,
        image_height=image_height,
        center=look_from,
        u=u,
        v=v,
        w=w,
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        pixel00=pixel00,
        pixel_delta_u=pixel_delta_u,
        pixel_delta_v=pixel_delta_v,
        lens_radius=lens_radius,
        lens_u=lens_radius * u,
        lens_v=lens_radius * v,
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00 = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())

# Defocus disk basis, only read when _lens_enabled is 1
_lens_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_lens_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_lens_enabled = ti.field(dtype=ti.i32, shape=())

_sky_color = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(config: CameraConfig) -> CameraGeometry:
    """Compute camera geometry and write it into the Taichi fields.

    Must be called before rendering, from Python (not from within a kernel).

    Args:
        config: Camera configuration.

    Returns:
        The derived CameraGeometry.

    Raises:
        ValueError: If the camera basis is degenerate.
    """
    geometry = compute_camera_geometry(config)

    _camera_center[None] = geometry.center.tolist()
    _pixel00[None] = geometry.pixel00.tolist()
    _pixel_delta_u[None] = geometry.pixel_delta_u.tolist()
    _pixel_delta_v[None] = geometry.pixel_delta_v.tolist()
    _lens_u[None] = geometry.lens_u.tolist()
    _lens_v[None] = geometry.lens_v.tolist()
    _lens_enabled[None] = 1 if geometry.lens_enabled else 0
    _sky_color[None] = list(config.sky_color)

    logger.debug(
        "Camera %dx%d, viewport %.4f x %.4f, lens radius %.4f",
        geometry.image_width,
        geometry.image_height,
        geometry.viewport_width,
        geometry.viewport_height,
        geometry.lens_radius,
    )
    return geometry


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(column: ti.i32, row: ti.i32, state: ti.u32):
    """Generate a jittered camera ray for one sample of a pixel.

    The pixel center is offset by a uniform amount in [-0.5, 0.5) along both
    pixel axes. With the lens enabled, the origin is moved to a uniform
    point of the defocus disk.

    Args:
        column: Pixel column (0 = left).
        row: Pixel row (0 = top).
        state: The generator state.

    Returns:
        A tuple (origin, direction, new_state). The direction is not
        normalized.
    """
    offset_x, s = next_float(state)
    offset_y, s = next_float(s)

    pixel_sample = (
        _pixel00[None]
        + (ti.cast(column, ti.f32) + offset_x - 0.5) * _pixel_delta_u[None]
        + (ti.cast(row, ti.f32) + offset_y - 0.5) * _pixel_delta_v[None]
    )

    origin = _camera_center[None]
    if _lens_enabled[None] == 1:
        p, s = random_in_unit_disk(s)
        origin = _camera_center[None] + p.x * _lens_u[None] + p.y * _lens_v[None]

    return origin, pixel_sample - origin, s


@ti.func
def get_sky_color() -> vec3:
    """Get the background color at the top of the sky gradient."""
    return _sky_color[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with center, pixel00, pixel_delta_u, pixel_delta_v,
        lens_u, lens_v and sky_color read back from the fields.
    """
    fields = {
        "center": _camera_center,
        "pixel00": _pixel00,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "lens_u": _lens_u,
        "lens_v": _lens_v,
        "sky_color": _sky_color,
    }
    info = {}
    for name, value_field in fields.items():
        value = value_field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
