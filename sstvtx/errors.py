"""Exception types raised by the SSTV encoder.

Every failure reported to callers derives from ``SSTVError`` and carries
the offending value plus whatever bounds were violated.
"""

from __future__ import annotations

from typing import Optional, Sequence


class SSTVError(Exception):
    """Base class for all encoder failures."""


class InvalidSampleRateError(SSTVError, ValueError):
    """Sample rate outside the supported range."""

    def __init__(self, sample_rate: float, min_rate: int, max_rate: int):
        self.sample_rate = sample_rate
        self.min_rate = min_rate
        self.max_rate = max_rate
        super().__init__(
            f"Invalid sample rate: {sample_rate} Hz, "
            f"supported range: {min_rate}-{max_rate} Hz"
        )


class InvalidBitDepthError(SSTVError, ValueError):
    """Bit depth not supported by the PCM writer."""

    def __init__(self, bit_depth: int, allowed: Sequence[int]):
        self.bit_depth = bit_depth
        self.allowed = tuple(allowed)
        allowed_str = ', '.join(str(b) for b in self.allowed)
        super().__init__(
            f"Invalid bit depth: {bit_depth}, supported: {allowed_str}"
        )


class UnsupportedModeError(SSTVError, ValueError):
    """Requested SSTV mode is not one of the supported variants."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"Unsupported SSTV mode: {mode}")


class ImageProcessingError(SSTVError):
    """Image could not be decoded, fitted or encoded."""


class NoProcessedImageError(ImageProcessingError):
    """A save was requested before any modulation run completed."""

    def __init__(self, message: str = 'No processed image available, call modulate_image() first'):
        super().__init__(message)


class OutputWriteError(SSTVError, OSError):
    """Writing an output file failed."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = str(path)
        self.reason = reason
        detail = f": {reason}" if reason else ''
        super().__init__(f"Failed to write {self.path}{detail}")

    def __str__(self) -> str:
        detail = f": {self.reason}" if self.reason else ''
        return f"Failed to write {self.path}{detail}"


class MemoryLimitError(SSTVError):
    """Estimated memory for a job exceeds the caller's limit."""

    def __init__(self, required_bytes: int, limit_mb: Optional[float] = None):
        self.required_bytes = required_bytes
        self.limit_mb = limit_mb
        super().__init__(f"Insufficient memory: {required_bytes} bytes required")
