"""Convenience entry points for one-shot encoding jobs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .audio import validate_bit_depth
from .config import EncoderConfig
from .constants import DEFAULT_BIT_DEPTH, DEFAULT_SAMPLE_RATE, WAV_HEADER_BYTES
from .errors import ImageProcessingError, MemoryLimitError
from .export import ImageSaveConfig
from .image_fitter import ImageSource
from .memory import MemoryUsageMB, check_memory_requirements
from .modes import ALL_MODES, ModeSpec, SSTVMode, get_mode_spec
from .modulator import SSTVModulator
from .synth import validate_sample_rate

logger = logging.getLogger('sstvtx.pipeline')

PathLike = Union[str, Path]
ModeLike = Union[SSTVMode, ModeSpec, str]


def load_image(path: PathLike) -> Image.Image:
    """Open an image file and convert it to RGB.

    Raises:
        ImageProcessingError: The file is missing or not a decodable image.
    """
    try:
        with Image.open(path) as img:
            return img.convert('RGB')
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Failed to load image {path}: {e}") from e


def generate_sstv_from_image(image: ImageSource, output_path: PathLike, mode: ModeLike,
                             sample_rate: int = DEFAULT_SAMPLE_RATE) -> Path:
    """Encode an in-memory image straight to a WAV file."""
    modulator = SSTVModulator(mode, sample_rate)
    modulator.modulate_image(image)
    return modulator.export_wav(output_path)


def generate_sstv_from_file(image_path: PathLike, output_path: PathLike, mode: ModeLike,
                            sample_rate: int = DEFAULT_SAMPLE_RATE) -> Path:
    """Encode an image file straight to a WAV file."""
    return generate_sstv_from_image(load_image(image_path), output_path, mode, sample_rate)


def generate_sstv_with_image_save(image_path: PathLike, output_dir: PathLike, base_name: str,
                                  mode: ModeLike,
                                  image_config: Optional[ImageSaveConfig] = None,
                                  sample_rate: int = DEFAULT_SAMPLE_RATE
                                  ) -> tuple[Path, Path]:
    """Encode an image file and also save the fitted image.

    Returns:
        Tuple of (audio_path, image_path).
    """
    modulator = SSTVModulator(mode, sample_rate)
    return modulator.batch_process(load_image(image_path), output_dir, base_name, image_config)


def get_supported_modes() -> list[tuple[SSTVMode, str, tuple[int, int], float]]:
    """All supported modes as (mode, display name, (width, height), duration_s)."""
    return [
        (spec.mode, spec.display_name, spec.dimensions, spec.duration_s)
        for spec in ALL_MODES.values()
    ]


def estimate_file_size(mode: ModeLike, sample_rate: int,
                       bit_depth: int = DEFAULT_BIT_DEPTH) -> int:
    """Approximate WAV size in bytes for a transmission in ``mode``."""
    spec = get_mode_spec(mode)
    validate_sample_rate(sample_rate)
    validate_bit_depth(bit_depth)
    sample_count = int(spec.duration_s * sample_rate)
    return sample_count * (bit_depth // 8) + WAV_HEADER_BYTES


def enforce_memory_limit(image_width: int, image_height: int, mode: ModeLike,
                         sample_rate: int, memory_limit_mb: Optional[float]) -> None:
    """Refuse a job whose estimated memory exceeds ``memory_limit_mb``.

    No limit (None) accepts every job.

    Raises:
        MemoryLimitError: The estimate is above the limit.
    """
    if memory_limit_mb is None:
        return
    fits, required_mb, suggested = check_memory_requirements(
        image_width, image_height, mode, sample_rate, available_mb=memory_limit_mb)
    if not fits:
        logger.warning(
            f"Job needs ~{required_mb:.1f} MB (limit {memory_limit_mb} MB); "
            f"suggested source size {suggested}"
        )
        raise MemoryLimitError(int(required_mb * 1024 * 1024), memory_limit_mb)


def process_sstv_complete(input_path: PathLike, output_dir: PathLike, base_name: str,
                          mode: ModeLike,
                          image_config: Optional[ImageSaveConfig] = None,
                          memory_limit_mb: Optional[float] = None,
                          sample_rate: int = DEFAULT_SAMPLE_RATE,
                          bit_depth: int = DEFAULT_BIT_DEPTH
                          ) -> tuple[Path, Path, MemoryUsageMB]:
    """Encode, save audio and image, and report memory use.

    Args:
        memory_limit_mb: Refuse the job when the estimate exceeds this.

    Returns:
        Tuple of (audio_path, image_path, memory usage of the run).

    Raises:
        MemoryLimitError: The estimated memory exceeds ``memory_limit_mb``.
    """
    validate_bit_depth(bit_depth)
    image = load_image(input_path)
    width, height = image.size
    enforce_memory_limit(width, height, mode, sample_rate, memory_limit_mb)

    modulator = SSTVModulator(mode, sample_rate)
    audio_path, image_path = modulator.batch_process(
        image, output_dir, base_name, image_config, bit_depth)
    usage = modulator.memory_usage().to_mb()
    modulator.clear_memory()
    return audio_path, image_path, usage


def process_with_config(input_path: PathLike, base_name: str,
                        config: Optional[EncoderConfig] = None
                        ) -> tuple[Path, Path, MemoryUsageMB]:
    """Run ``process_sstv_complete`` with every setting taken from ``config``.

    Audio and fitted image land in ``config.output_dir``. Without a config
    the defaults file (or built-in defaults) is used.
    """
    config = config or EncoderConfig.load_default()
    return process_sstv_complete(
        input_path,
        config.output_dir,
        base_name,
        config.mode,
        image_config=config.image_save_config(),
        memory_limit_mb=config.memory_limit_mb,
        sample_rate=config.sample_rate,
        bit_depth=config.bit_depth,
    )
