"""Saving fitted images and their processing metadata.

The fitted image is kept for the record next to the audio: PNG, JPEG (with
quality) or BMP, optionally with a JSON sidecar describing how the source
was scaled onto the mode canvas.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Union

from PIL import Image

from .constants import VERSION
from .errors import ImageProcessingError, OutputWriteError
from .image_fitter import FitMetadata
from .modes import get_mode_spec

logger = logging.getLogger('sstvtx.export')

PathLike = Union[str, Path]

# format -> (Pillow format name, file extension)
IMAGE_FORMATS: dict[str, tuple[str, str]] = {
    'png': ('PNG', 'png'),
    'jpeg': ('JPEG', 'jpg'),
    'bmp': ('BMP', 'bmp'),
}

DEFAULT_JPEG_QUALITY = 95


@dataclass(frozen=True)
class ImageSaveConfig:
    """How to save a fitted image.

    Attributes:
        format: 'png', 'jpeg' or 'bmp'.
        jpeg_quality: JPEG quality 1-100 (ignored for other formats).
        preserve_metadata: Also write a JSON sidecar next to the image.
        custom_suffix: Extra name component used by auto-naming.
    """
    format: str = 'png'
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    preserve_metadata: bool = True
    custom_suffix: Optional[str] = None

    @classmethod
    def png(cls) -> 'ImageSaveConfig':
        return cls(format='png')

    @classmethod
    def jpeg(cls, quality: int = DEFAULT_JPEG_QUALITY) -> 'ImageSaveConfig':
        return cls(format='jpeg', jpeg_quality=max(1, min(100, quality)))

    @classmethod
    def bmp(cls) -> 'ImageSaveConfig':
        return cls(format='bmp')

    def with_suffix(self, suffix: str) -> 'ImageSaveConfig':
        return replace(self, custom_suffix=suffix)

    @property
    def extension(self) -> str:
        return IMAGE_FORMATS.get(self.format, ('PNG', 'png'))[1]


def save_image(image: Image.Image, path: PathLike, config: ImageSaveConfig) -> Path:
    """Encode ``image`` to ``path`` in the configured format.

    Raises:
        ImageProcessingError: Unsupported format or encoder failure.
        OutputWriteError: The file could not be written.
    """
    if config.format not in IMAGE_FORMATS:
        raise ImageProcessingError(f"Unsupported image format: {config.format}")

    pil_format, _ext = IMAGE_FORMATS[config.format]
    params: dict[str, Any] = {}
    if config.format == 'jpeg':
        params['quality'] = config.jpeg_quality

    path = Path(path)
    try:
        image.save(path, format=pil_format, **params)
    except (KeyError, ValueError) as e:
        raise ImageProcessingError(f"{pil_format} encoding failed: {e}") from e
    except OSError as e:
        raise OutputWriteError(str(path), str(e)) from e

    logger.info(f"Saved fitted image to {path}")
    return path


def metadata_to_dict(metadata: FitMetadata, sample_rate: int) -> dict[str, Any]:
    """Sidecar document for a fitted image."""
    spec = get_mode_spec(metadata.mode)
    left, top, right, bottom = metadata.black_bars
    return {
        'sstv_processing_info': {
            'version': VERSION,
            'sstv_mode': spec.name,
            'original_dimensions': {
                'width': metadata.original_dimensions[0],
                'height': metadata.original_dimensions[1],
            },
            'target_dimensions': {
                'width': metadata.target_dimensions[0],
                'height': metadata.target_dimensions[1],
            },
            'scale_factor': metadata.scale_factor,
            'black_bars': {
                'left': left,
                'top': top,
                'right': right,
                'bottom': bottom,
            },
            'processing_timestamp': metadata.timestamp,
            'sample_rate': sample_rate,
            'duration_seconds': spec.duration_s,
        }
    }


def write_metadata_sidecar(image_path: PathLike, metadata: FitMetadata,
                           sample_rate: int) -> Path:
    """Write the JSON sidecar for ``image_path`` (same stem, .json)."""
    sidecar = Path(image_path).with_suffix('.json')
    try:
        with open(sidecar, 'w') as f:
            json.dump(metadata_to_dict(metadata, sample_rate), f, indent=2)
    except OSError as e:
        raise OutputWriteError(str(sidecar), str(e)) from e
    logger.debug(f"Wrote metadata sidecar {sidecar}")
    return sidecar


def auto_image_filename(metadata: FitMetadata, config: ImageSaveConfig) -> str:
    """File name of the form sstv_{mode}_{timestamp}_{W}x{H}[_suffix].{ext}."""
    spec = get_mode_spec(metadata.mode)
    suffix = f"_{config.custom_suffix}" if config.custom_suffix else ''
    return (
        f"sstv_{spec.name}_{metadata.timestamp}_"
        f"{spec.width}x{spec.height}{suffix}.{config.extension}"
    )


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) if missing."""
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(str(path), str(e)) from e
    return path
