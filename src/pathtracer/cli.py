"""Command-line front end: render a demo scene.

Usage:
    pathtracer [scene] [options]
    python -m pathtracer [scene] [options]

Scenes:
    random      Random sphere field with depth of field (default)
    basic       Material showcase
    wide-angle  Two touching spheres

Options:
    -o, --output PATH       Output file; ".png" writes a PNG, anything else
                            the plain-text pixel stream (default: stdout)
    --width WIDTH           Override the scene's image width
    --samples SAMPLES       Override samples per pixel
    --depth DEPTH           Override the maximum bounce depth
    --seed SEED             Render seed, also used for the random scene (default: 0)
    --rows-per-batch ROWS   Rows per kernel launch / progress update (default: 16)
    --preview               Show the result in a Matplotlib window
    --quiet                 Only log warnings and errors
    --log-level LEVEL       Logging level (default: INFO)

Log output goes to stderr, so stdout only ever carries the image.

Example:
    pathtracer basic --width 200 --samples 20 -o basic.png
"""

from __future__ import annotations

import argparse
import contextlib
import dataclasses
import logging
import os
import sys
from collections.abc import Sequence

logger = logging.getLogger("pathtracer")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SCENE_CHOICES = ("random", "basic", "wide-angle")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install a stderr console handler on the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        The configured package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.propagate = False
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a demo scene with the Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene",
        nargs="?",
        choices=SCENE_CHOICES,
        default="random",
        help="Scene to render (default: random)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file path (default: stdout)",
    )
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--samples", type=int, default=None, help="Samples per pixel")
    parser.add_argument("--depth", type=int, default=None, help="Maximum bounce depth")
    parser.add_argument("--seed", type=int, default=0, help="Render seed (default: 0)")
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows per kernel launch (default: 16)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the rendered image in a Matplotlib window",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser


def build_scene(name: str, seed: int = 0):
    """Create the named demo scene.

    Returns:
        Tuple of (scene, camera_config).

    Raises:
        ValueError: If the scene name is unknown.
    """
    from pathtracer.scene.demo import (
        make_basic_world,
        make_random_world,
        make_wide_angle_world,
    )

    if name == "random":
        return make_random_world(seed)
    if name == "basic":
        return make_basic_world()
    if name == "wide-angle":
        return make_wide_angle_world()
    raise ValueError(f"Unknown scene: {name}")


def apply_overrides(config, args: argparse.Namespace):
    """Return a copy of the camera config with command-line overrides."""
    overrides = {}
    if args.width is not None:
        overrides["image_width"] = args.width
    if args.samples is not None:
        overrides["samples_per_pixel"] = args.samples
    if args.depth is not None:
        overrides["max_depth"] = args.depth
    return dataclasses.replace(config, **overrides) if overrides else config


def run(args: argparse.Namespace) -> None:
    """Render the selected scene and write it to the chosen sink."""
    # Lazy imports so Taichi is initialized before any field is declared
    from pathtracer.core.color import encode_image
    from pathtracer.core.renderer import render_image
    from pathtracer.preview.export import save_image, write_ppm

    scene, config = build_scene(args.scene, args.seed)
    config = apply_overrides(config, args)

    def progress(rows_done: int, total_rows: int) -> None:
        logger.info(
            "Progress: %d/%d rows (%.1f%%)",
            rows_done,
            total_rows,
            100.0 * rows_done / total_rows,
        )

    image = render_image(
        config,
        scene,
        seed=args.seed,
        rows_per_batch=args.rows_per_batch,
        callback=progress,
    )

    if args.output is None:
        write_ppm(encode_image(image), sys.stdout)
    else:
        save_image(image, args.output)
        logger.info("Saved to: %s", args.output)

    if args.preview:
        from pathtracer.preview.display import show_preview

        show_preview(image, title=f"{args.scene} ({config.image_width}x{config.image_height})")


def init_taichi() -> None:
    """Initialize Taichi on the CPU without writing to stdout.

    stdout may carry the pixel stream, so the version banner printed on
    import goes to stderr and the runtime only logs warnings and above.
    """
    os.environ.setdefault("ENABLE_TAICHI_HEADER_PRINT", "False")
    with contextlib.redirect_stdout(sys.stderr):
        import taichi as ti

        ti.init(arch=ti.cpu, log_level=ti.WARN)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Process exit status: 0 on success, 1 on error.
    """
    args = build_parser().parse_args(argv)
    configure_logging("WARNING" if args.quiet else args.log_level)

    init_taichi()

    try:
        run(args)
    except (ValueError, RuntimeError, TypeError, OSError) as e:
        logger.error("Error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
