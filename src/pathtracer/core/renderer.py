"""High-level rendering entry points.

This module ties camera, scene and integrator together:

- render_image() uploads the camera and scene, renders the image in row
  batches (invoking an optional progress callback after each batch) and
  returns the averaged linear colors as an (H, W, 3) array.
- iter_render_batches() is the generator form of the same loop, yielding
  progress after each batch.
- render() produces the plain-text pixel stream: the three header lines
  followed by one "<r> <g> <b>" line per pixel, top-left pixel first.

Rendering is a pure function of the camera configuration, the scene and
the seed: repeated calls with equal inputs produce identical output, for
any batch size.

Example:
    >>> import sys
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.renderer import render
    >>> from pathtracer.scene.demo import make_basic_world
    >>> scene, config = make_basic_world()
    >>> for line in render(config, scene, seed=7):
    ...     sys.stdout.write(line + "\\n")
"""

import logging
import time
from collections.abc import Callable, Generator, Iterator

import numpy as np
import numpy.typing as npt

from pathtracer.camera.thin_lens import CameraConfig, setup_camera
from pathtracer.core.color import encode_image
from pathtracer.core.integrator import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    get_image_numpy,
    render_rows,
    setup_render_target,
)
from pathtracer.preview.export import ppm_lines
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# Rows rendered per kernel launch
DEFAULT_ROWS_PER_BATCH = 16


def _prepare(config: CameraConfig, scene: Scene) -> None:
    """Upload camera and scene and size the render target.

    Raises:
        ValueError: If the image does not fit the render buffer or the
            camera basis is degenerate.
        RuntimeError: If the scene exceeds a capacity limit.
    """
    width, height = config.image_width, config.image_height
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    setup_camera(config)
    scene.upload()
    setup_render_target(width, height)


def iter_render_batches(
    config: CameraConfig,
    scene: Scene,
    *,
    seed: int = 0,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
) -> Generator[tuple[int, int], None, None]:
    """Render the image in row batches, yielding after each batch.

    Rows are rendered top to bottom. After the generator is exhausted the
    image is available from integrator.get_image_numpy().

    Args:
        config: Camera and render settings.
        scene: The scene to render.
        seed: Render seed.
        rows_per_batch: Number of rows per kernel launch (at least 1).

    Yields:
        Tuple of (rows_done, total_rows).

    Raises:
        ValueError: If rows_per_batch < 1 or the configuration is invalid.
    """
    if rows_per_batch < 1:
        raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")

    _prepare(config, scene)
    height = config.image_height

    for row_start in range(0, height, rows_per_batch):
        row_end = min(row_start + rows_per_batch, height)
        render_rows(row_start, row_end, config.samples_per_pixel, config.max_depth, seed)
        logger.debug("Rendered rows %d-%d of %d", row_start, row_end - 1, height)
        yield row_end, height


def render_image(
    config: CameraConfig,
    scene: Scene,
    *,
    seed: int = 0,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.float32]:
    """Render a scene to a linear color image.

    Args:
        config: Camera and render settings.
        scene: The scene to render.
        seed: Render seed.
        rows_per_batch: Number of rows per kernel launch.
        callback: Optional callback called after each batch with
            (rows_done, total_rows).

    Returns:
        Averaged linear colors, shape (image_height, image_width, 3).

    Example:
        >>> def progress(done, total):
        ...     print(f"Progress: {done}/{total} rows")
        >>> image = render_image(config, scene, callback=progress)
    """
    logger.info(
        "Rendering %dx%d, %d samples per pixel, max depth %d, seed %d",
        config.image_width,
        config.image_height,
        config.samples_per_pixel,
        config.max_depth,
        seed,
    )
    start = time.perf_counter()

    for rows_done, total_rows in iter_render_batches(
        config, scene, seed=seed, rows_per_batch=rows_per_batch
    ):
        if callback is not None:
            callback(rows_done, total_rows)

    image = get_image_numpy()
    logger.info("Render finished in %.2fs", time.perf_counter() - start)
    return image


def render(
    config: CameraConfig,
    scene: Scene,
    *,
    seed: int = 0,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    callback: ProgressCallback | None = None,
) -> Iterator[str]:
    """Render a scene to the plain-text pixel stream.

    The whole image is rendered before the first line is produced, so the
    stream is always in row-major order.

    Returns:
        An iterator over output lines (without trailing newlines).
    """
    image = render_image(
        config, scene, seed=seed, rows_per_batch=rows_per_batch, callback=callback
    )
    return ppm_lines(encode_image(image))
