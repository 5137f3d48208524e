"""Advisory memory bookkeeping.

Figures here are approximations computed from buffer lengths and image
sizes; nothing enforces them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

from .constants import (
    ASSUMED_AVAILABLE_MB,
    BYTES_PER_PIXEL,
    BYTES_PER_SAMPLE,
    ESTIMATE_OVERHEAD_BYTES,
)
from .modes import ModeSpec, SSTVMode, get_mode_spec

_MB = 1024 * 1024


@dataclass(frozen=True)
class MemoryUsageMB:
    audio_samples_mb: float
    processed_image_mb: float
    metadata_mb: float
    total_mb: float


@dataclass(frozen=True)
class MemoryUsage:
    """Bytes held by a modulator's retained outputs."""
    audio_samples_bytes: int
    processed_image_bytes: int
    metadata_bytes: int

    @property
    def total_bytes(self) -> int:
        return self.audio_samples_bytes + self.processed_image_bytes + self.metadata_bytes

    def to_mb(self) -> MemoryUsageMB:
        return MemoryUsageMB(
            audio_samples_mb=self.audio_samples_bytes / _MB,
            processed_image_mb=self.processed_image_bytes / _MB,
            metadata_mb=self.metadata_bytes / _MB,
            total_mb=self.total_bytes / _MB,
        )


def estimate_memory_usage(image_width: int, image_height: int,
                          mode: Union[SSTVMode, ModeSpec, str],
                          sample_rate: int) -> int:
    """Peak bytes to encode a source of the given size.

    Source image + target canvas + audio samples + a fixed overhead.
    """
    spec = get_mode_spec(mode)
    source = image_width * image_height * BYTES_PER_PIXEL
    target = spec.pixel_count * BYTES_PER_PIXEL
    audio = int(sample_rate * spec.duration_s * BYTES_PER_SAMPLE)
    return source + target + audio + ESTIMATE_OVERHEAD_BYTES


def check_memory_requirements(image_width: int, image_height: int,
                              mode: Union[SSTVMode, ModeSpec, str],
                              sample_rate: int,
                              available_mb: float = ASSUMED_AVAILABLE_MB
                              ) -> tuple[bool, float, Optional[tuple[int, int]]]:
    """Compare the estimate against an assumed memory budget.

    Returns:
        Tuple of (fits, required_mb, suggested_source_size). The suggested
        size is only given when the job does not fit, and keeps an 80%
        safety margin.
    """
    required_mb = estimate_memory_usage(image_width, image_height, mode, sample_rate) / _MB
    fits = required_mb <= available_mb

    suggested = None
    if not fits:
        factor = math.sqrt(available_mb / required_mb * 0.8)
        suggested = (
            max(100, int(image_width * factor)),
            max(100, int(image_height * factor)),
        )
    return fits, required_mb, suggested
