"""Fit arbitrary images onto a mode's fixed canvas.

The source is scaled to fit entirely inside the target while keeping its
aspect ratio, then centered on a black canvas (letterbox / pillarbox).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

import numpy as np
from PIL import Image

from .constants import OVERSIZE_SOURCE_FACTOR, TIMESTAMP_FORMAT
from .errors import ImageProcessingError
from .modes import ModeSpec, SSTVMode, get_mode_spec

logger = logging.getLogger('sstvtx.image_fitter')

ImageSource = Union[Image.Image, np.ndarray]


@dataclass(frozen=True)
class FitMetadata:
    """How a source image was placed on the mode canvas.

    Attributes:
        original_dimensions: Source (width, height).
        target_dimensions: Canvas (width, height).
        mode: Mode the canvas belongs to.
        scale_factor: Uniform scale applied to the source.
        black_bars: Margins as (left, top, right, bottom) in pixels.
        timestamp: UTC processing time, formatted YYYYMMDD_HHMMSS.
    """
    original_dimensions: tuple[int, int]
    target_dimensions: tuple[int, int]
    mode: SSTVMode
    scale_factor: float
    black_bars: tuple[int, int, int, int]
    timestamp: str

    @property
    def scaled_dimensions(self) -> tuple[int, int]:
        left, top, right, bottom = self.black_bars
        tw, th = self.target_dimensions
        return tw - left - right, th - top - bottom


@dataclass(frozen=True)
class FittedImage:
    """A mode-sized RGB image ready for scanning.

    ``pixels`` is a read-only (height, width, 3) uint8 view of ``image``.
    """
    image: Image.Image
    pixels: np.ndarray
    metadata: FitMetadata

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def nbytes(self) -> int:
        return int(self.pixels.nbytes)


def _to_rgb_image(source: ImageSource) -> Image.Image:
    if isinstance(source, np.ndarray):
        if source.ndim != 3 or source.shape[2] != 3:
            raise ImageProcessingError(
                f"Pixel array must have shape (height, width, 3), got {source.shape}")
        if source.shape[0] == 0 or source.shape[1] == 0:
            raise ImageProcessingError(f"Pixel array is empty: {source.shape}")
        return Image.fromarray(np.ascontiguousarray(source, dtype=np.uint8), 'RGB')
    if isinstance(source, Image.Image):
        return source if source.mode == 'RGB' else source.convert('RGB')
    raise ImageProcessingError(f"Unsupported image type: {type(source).__name__}")


def compute_fit(src_width: int, src_height: int,
                target_width: int, target_height: int
                ) -> tuple[float, tuple[int, int], tuple[int, int, int, int]]:
    """Scale, scaled size and margins for fitting a source into a target.

    Returns:
        Tuple of (scale, (scaled_width, scaled_height),
        (left, top, right, bottom)).
    """
    if src_width <= 0 or src_height <= 0:
        raise ImageProcessingError(f"Invalid source size {src_width}x{src_height}")

    scale = min(target_width / src_width, target_height / src_height)
    scaled_width = min(target_width, max(1, int(src_width * scale)))
    scaled_height = min(target_height, max(1, int(src_height * scale)))

    offset_x = (target_width - scaled_width) // 2
    offset_y = (target_height - scaled_height) // 2
    margins = (
        offset_x,
        offset_y,
        target_width - offset_x - scaled_width,
        target_height - offset_y - scaled_height,
    )
    return scale, (scaled_width, scaled_height), margins


def fit_image(source: ImageSource, mode: Union[SSTVMode, ModeSpec, str]) -> FittedImage:
    """Resize and letterbox an image onto the canvas of ``mode``.

    Args:
        source: Pillow image (any mode) or (H, W, 3) uint8 array.
        mode: Target SSTV mode.

    Returns:
        FittedImage with the canvas, its pixels and fit metadata.

    Raises:
        ImageProcessingError: If the source is empty or cannot be resized.
    """
    spec = get_mode_spec(mode)
    image = _to_rgb_image(source)
    src_width, src_height = image.size
    target_width, target_height = spec.dimensions

    if src_width * src_height > OVERSIZE_SOURCE_FACTOR * spec.pixel_count:
        logger.warning(
            f"Source image is very large ({src_width}x{src_height}); "
            f"consider downscaling before encoding to save memory"
        )

    scale, (scaled_width, scaled_height), margins = compute_fit(
        src_width, src_height, target_width, target_height)

    try:
        resized = image.resize((scaled_width, scaled_height), Image.Resampling.LANCZOS)
    except (OSError, ValueError) as e:
        raise ImageProcessingError(f"Failed to resize image: {e}") from e

    canvas = Image.new('RGB', (target_width, target_height), (0, 0, 0))
    canvas.paste(resized, (margins[0], margins[1]))

    pixels = np.asarray(canvas, dtype=np.uint8).copy()
    pixels.flags.writeable = False

    metadata = FitMetadata(
        original_dimensions=(src_width, src_height),
        target_dimensions=(target_width, target_height),
        mode=spec.mode,
        scale_factor=scale,
        black_bars=margins,
        timestamp=datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT),
    )
    logger.debug(
        f"Fitted {src_width}x{src_height} -> {scaled_width}x{scaled_height} "
        f"on {target_width}x{target_height} (scale {scale:.4f})"
    )
    return FittedImage(image=canvas, pixels=pixels, metadata=metadata)
