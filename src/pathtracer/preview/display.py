"""Matplotlib-based preview display for rendered images.

The preview shows exactly the pixels that would be written to the output:
linear colors pass through the same gamma-2 encoding and clamping.

Example:
    >>> from pathtracer.core.renderer import render_image
    >>> from pathtracer.preview.display import show_preview
    >>>
    >>> image = render_image(config, scene)
    >>> show_preview(image, title="Basic world")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from pathtracer.core.color import encode_image


def process_image_for_display(image: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Convert a linear image into display values in [0, 1].

    Args:
        image: Linear color array of shape (H, W, 3).

    Returns:
        float32 array of the encoded pixels divided by 255.
    """
    return (encode_image(image).astype(np.float32) / 255.0).astype(np.float32)


def show_preview(
    image: npt.ArrayLike,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a rendered image as a Matplotlib figure.

    Args:
        image: Linear color array of shape (H, W, 3).
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(image)
    height, width, _ = display_image.shape

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")
    ax.set_title(title if title is not None else f"Render Preview - {width}x{height}")

    plt.tight_layout()
    plt.show(block=block)
