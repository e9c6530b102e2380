"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with box-filter jitter and a defocus disk

Camera responsibilities:
    - Derive the viewport geometry once from an immutable configuration
    - Map (column, row) pixel coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Offset ray origins across the lens for depth of field

Pixel coordinates start at the top-left corner:
    column in [0, width): left to right
    row in [0, height): top to bottom
"""

from .thin_lens import (
    DEFAULT_SKY_COLOR,
    CameraConfig,
    CameraGeometry,
    compute_camera_geometry,
    get_camera_info,
    get_ray,
    get_sky_color,
    setup_camera,
)

__all__ = [
    "CameraConfig",
    "CameraGeometry",
    "DEFAULT_SKY_COLOR",
    "compute_camera_geometry",
    "setup_camera",
    "get_ray",
    "get_sky_color",
    "get_camera_info",
]
