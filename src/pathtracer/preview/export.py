"""Image export utilities for rendered images.

Rendered images leave the renderer as linear float colors; core.color
encodes them into 8-bit channel values. This module turns encoded pixels
into output:

    - Plain-text pixel stream (P3 header, one "<r> <g> <b>" line per pixel)
      to any text stream, stdout by default, or to a file
    - PNG (8-bit RGB via Pillow)

save_image() picks the format from the file suffix.

Example:
    >>> from pathtracer.core.color import encode_image
    >>> from pathtracer.preview.export import save_image, write_ppm
    >>> pixels = encode_image(image)
    >>> write_ppm(pixels)               # to stdout
    >>> save_image(image, "out.png")    # linear image, encoded on save
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.core.color import MAX_CHANNEL_VALUE, encode_image

# Format tag of the plain-text pixel stream
PPM_MAGIC = "P3"


def _check_pixels(pixels: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    array = np.asarray(pixels)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected pixel array of shape (H, W, 3), got {array.shape}")
    if array.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {array.dtype}")
    return array


def ppm_lines(pixels: npt.ArrayLike) -> Iterator[str]:
    """Yield the plain-text pixel stream for an encoded image.

    Args:
        pixels: uint8 array of shape (H, W, 3), row 0 at the top.

    Yields:
        "P3", "<width> <height>", "255", then one "<r> <g> <b>" line per
        pixel, left to right, top to bottom. Lines carry no newline.

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
    """
    array = _check_pixels(pixels)
    height, width, _ = array.shape

    yield PPM_MAGIC
    yield f"{width} {height}"
    yield str(MAX_CHANNEL_VALUE)
    for r, g, b in array.reshape(-1, 3).tolist():
        yield f"{r} {g} {b}"


def write_ppm(pixels: npt.ArrayLike, stream: TextIO | None = None) -> int:
    """Write the plain-text pixel stream.

    Args:
        pixels: uint8 array of shape (H, W, 3).
        stream: Destination text stream. Defaults to sys.stdout.

    Returns:
        The number of lines written.
    """
    out = sys.stdout if stream is None else stream
    count = 0
    for line in ppm_lines(pixels):
        out.write(line)
        out.write("\n")
        count += 1
    out.flush()
    return count


def save_ppm(pixels: npt.ArrayLike, filepath: str | Path) -> None:
    """Write the plain-text pixel stream to a file."""
    with open(filepath, "w", encoding="ascii", newline="\n") as handle:
        write_ppm(pixels, handle)


def save_png(pixels: npt.ArrayLike, filepath: str | Path) -> None:
    """Save encoded pixels as an 8-bit RGB PNG file.

    Args:
        pixels: uint8 array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
    """
    array = _check_pixels(pixels)
    pil_image = PILImage.fromarray(np.ascontiguousarray(array))
    pil_image.save(filepath)


def save_image(image: npt.ArrayLike, filepath: str | Path) -> None:
    """Encode a linear image and save it, choosing the format by suffix.

    ".png" writes a PNG; any other suffix writes the plain-text stream.

    Args:
        image: Linear color array of shape (H, W, 3).
        filepath: Output file path.
    """
    pixels = encode_image(image)
    if Path(filepath).suffix.lower() == ".png":
        save_png(pixels, filepath)
    else:
        save_ppm(pixels, filepath)
