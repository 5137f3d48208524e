"""Color transforms for SSTV scanning.

RGB to luminance / color-difference conversion and the pixel value to
tone frequency mapping. Works on scalars and numpy arrays alike.

No clamping is applied: a few colors map slightly outside 0-255 and
therefore slightly outside 1500-2300 Hz, which matches what receivers
expect from this formula.
"""

from __future__ import annotations

import numpy as np

from .constants import COLOR_FREQ_MULT, FREQ_BLACK


def rgb_to_y(r, g, b):
    """Luminance (Y) of an RGB pixel."""
    return 16.0 + (0.003906 * ((65.738 * r) + (129.057 * g) + (25.064 * b)))


def rgb_to_ry(r, g, b):
    """Red color difference (R-Y) of an RGB pixel."""
    return 128.0 + (0.003906 * ((112.439 * r) + (-94.154 * g) + (-18.285 * b)))


def rgb_to_by(r, g, b):
    """Blue color difference (B-Y) of an RGB pixel."""
    return 128.0 + (0.003906 * ((-37.945 * r) + (-74.494 * g) + (112.439 * b)))


def value_to_frequency(value):
    """Map a channel value to its tone frequency (1500 Hz black, ~2300 Hz white)."""
    return FREQ_BLACK + value * COLOR_FREQ_MULT


def split_planes(pixels: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split an (H, W, 3) uint8 array into float64 R, G, B planes."""
    rgb = pixels.astype(np.float64)
    return rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]


def yuv_planes(pixels: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute Y, R-Y and B-Y planes for a whole image.

    Args:
        pixels: RGB image as an (H, W, 3) uint8 array.

    Returns:
        Tuple of (y, ry, by) float64 arrays, each shape (H, W).
    """
    r, g, b = split_planes(pixels)
    return rgb_to_y(r, g, b), rgb_to_ry(r, g, b), rgb_to_by(r, g, b)
