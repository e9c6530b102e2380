#!/usr/bin/env python3
"""Render one of the demo scenes.

Usage:
    python -m examples.render_scene [random|basic|wide-angle] [options]

Example:
    python -m examples.render_scene basic --width 200 --samples 20 -o basic.png
    python -m examples.render_scene random --width 300 --samples 10 > random.ppm

See pathtracer.cli for the full option list.
"""

import sys

from pathtracer.cli import main

if __name__ == "__main__":
    sys.exit(main())
