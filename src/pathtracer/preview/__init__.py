"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview display
    export: Plain-text pixel stream and PNG export

Example:
    >>> from pathtracer.preview import save_image, show_preview
    >>> from pathtracer.core.renderer import render_image
    >>>
    >>> image = render_image(config, scene)
    >>> show_preview(image)
    >>> save_image(image, "output.png")
"""

from pathtracer.preview.display import (
    process_image_for_display,
    show_preview,
)
from pathtracer.preview.export import (
    PPM_MAGIC,
    ppm_lines,
    save_image,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    # Display functions
    "show_preview",
    "process_image_for_display",
    # Export functions
    "PPM_MAGIC",
    "ppm_lines",
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
