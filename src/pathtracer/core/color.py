"""Linear color to 8-bit pixel encoding.

Rendered radiance is linear. Before output each channel goes through:

1. Gamma correction with gamma = 2 (square root; non-positive values map to 0).
2. Clamping to [0, 0.999].
3. Scaling by 256 and truncation to an integer in [0, 255].

Pinned mapping (exercised by the test suite):

    Color(0.5, 0.25, 0.125) -> (181, 128, 90)

All functions run on the host with NumPy in float64 so the encoding does
not depend on the precision of the render buffer.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

GAMMA = 2.0

# Upper clamp bound applied after gamma correction
CLAMP_MAX = 0.999

# Multiplier from [0, 0.999] to integer channel values [0, 255]
CHANNEL_SCALE = 256.0

# Largest encoded channel value, written into the image header
MAX_CHANNEL_VALUE = 255


def linear_to_gamma(linear: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Apply gamma-2 correction.

    Args:
        linear: Scalar or array of linear channel values.

    Returns:
        sqrt(x) where x > 0, otherwise 0.
    """
    values = np.asarray(linear, dtype=np.float64)
    return np.where(values > 0.0, np.sqrt(np.maximum(values, 0.0)), 0.0)


def encode_image(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Encode a linear float image as 8-bit channel values.

    Args:
        image: Linear color array of shape (..., 3), e.g. (H, W, 3).

    Returns:
        uint8 array of the same shape.

    Raises:
        ValueError: If the last axis does not hold three channels.
    """
    values = np.asarray(image, dtype=np.float64)
    if values.ndim == 0 or values.shape[-1] != 3:
        raise ValueError(f"Expected trailing axis of 3 channels, got shape {values.shape}")

    corrected = linear_to_gamma(values)
    clamped = np.clip(corrected, 0.0, CLAMP_MAX)
    return np.floor(clamped * CHANNEL_SCALE).astype(np.uint8)


def encode_color(color: Sequence[float]) -> tuple[int, int, int]:
    """Encode a single linear RGB color.

    Args:
        color: Linear (r, g, b) values.

    Returns:
        Integer (r, g, b) channel values in [0, 255].
    """
    r, g, b = encode_image(np.asarray(color, dtype=np.float64).reshape(1, 3))[0]
    return int(r), int(g), int(b)
