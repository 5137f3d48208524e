"""
Audio output and test-signal helpers.

WAV (PCM) reading/writing via scipy, a small sine/chirp generator for
calibration signals, and level conversion utilities.
"""

from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import Union

import numpy as np
from scipy.io import wavfile

from .constants import DEFAULT_BIT_DEPTH, SUPPORTED_BIT_DEPTHS
from .errors import InvalidBitDepthError, OutputWriteError, SSTVError
from .synth import validate_sample_rate

logger = logging.getLogger('sstvtx.audio')

PathLike = Union[str, Path]


def validate_bit_depth(bit_depth: int) -> int:
    if bit_depth not in SUPPORTED_BIT_DEPTHS:
        raise InvalidBitDepthError(bit_depth, SUPPORTED_BIT_DEPTHS)
    return bit_depth


def to_pcm(samples: np.ndarray, bit_depth: int = DEFAULT_BIT_DEPTH) -> np.ndarray:
    """Convert int16 samples to the integer width of ``bit_depth``."""
    validate_bit_depth(bit_depth)
    data = np.asarray(samples, dtype=np.int16)
    if bit_depth == 32:
        return data.astype(np.int32) << 16
    return data


def write_wav(path: PathLike, samples: np.ndarray, sample_rate: int,
              bit_depth: int = DEFAULT_BIT_DEPTH) -> Path:
    """Write mono int16 samples to an uncompressed PCM WAV file.

    Args:
        path: Output file path.
        samples: Signed 16-bit samples.
        sample_rate: Sample rate in Hz.
        bit_depth: 16 or 32 bits per sample.

    Returns:
        The path written.

    Raises:
        InvalidSampleRateError: Sample rate outside the supported range.
        InvalidBitDepthError: Unsupported bit depth.
        OutputWriteError: The file could not be written.
    """
    validate_sample_rate(sample_rate)
    data = to_pcm(samples, bit_depth)
    path = Path(path)
    try:
        wavfile.write(str(path), int(sample_rate), data)
    except OSError as e:
        raise OutputWriteError(str(path), str(e)) from e

    logger.info(f"Wrote {len(data)} samples ({bit_depth}-bit, {sample_rate} Hz) to {path}")
    return path


def wav_bytes(samples: np.ndarray, sample_rate: int,
              bit_depth: int = DEFAULT_BIT_DEPTH) -> bytes:
    """Encode samples as an in-memory WAV file."""
    validate_sample_rate(sample_rate)
    data = to_pcm(samples, bit_depth)
    buf = io.BytesIO()
    wavfile.write(buf, int(sample_rate), data)
    return buf.getvalue()


def read_wav(path: PathLike) -> tuple[np.ndarray, int]:
    """Load a WAV file as float32 samples in [-1.0, 1.0].

    Multi-channel files return the first channel.

    Returns:
        Tuple of (samples, sample_rate).
    """
    try:
        sample_rate, data = wavfile.read(str(path))
    except (OSError, ValueError) as e:
        raise SSTVError(f"Failed to read WAV file {path}: {e}") from e

    if data.ndim > 1:
        data = data[:, 0]

    if data.dtype == np.int16:
        samples = data.astype(np.float32) / np.iinfo(np.int16).max
    elif data.dtype == np.int32:
        samples = data.astype(np.float32) / np.iinfo(np.int32).max
    elif np.issubdtype(data.dtype, np.floating):
        samples = data.astype(np.float32)
    else:
        raise InvalidBitDepthError(data.dtype.itemsize * 8, SUPPORTED_BIT_DEPTHS)

    return samples, int(sample_rate)


class AudioGenerator:
    """Generate plain calibration signals at a fixed sample rate."""

    def __init__(self, sample_rate: int, bit_depth: int = DEFAULT_BIT_DEPTH):
        self._sample_rate = validate_sample_rate(sample_rate)
        self._bit_depth = validate_bit_depth(bit_depth)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def bit_depth(self) -> int:
        return self._bit_depth

    def _time_axis(self, duration: float) -> np.ndarray:
        num_samples = int(duration * self._sample_rate)
        return np.arange(num_samples, dtype=np.float32) / self._sample_rate

    def generate_sine_wave(self, frequency: float, duration: float,
                           amplitude: float = 1.0) -> np.ndarray:
        """Sine wave of ``duration`` seconds as float32 samples."""
        t = self._time_axis(duration)
        return (amplitude * np.sin(2.0 * np.pi * frequency * t)).astype(np.float32)

    def generate_chirp(self, start_freq: float, end_freq: float, duration: float,
                       amplitude: float = 1.0) -> np.ndarray:
        """Frequency sweep from ``start_freq`` to ``end_freq``."""
        t = self._time_axis(duration)
        if duration <= 0:
            return t
        instantaneous = start_freq + (end_freq - start_freq) * (t / duration)
        return (amplitude * np.sin(2.0 * np.pi * instantaneous * t)).astype(np.float32)


def db_to_linear(db: float) -> float:
    """Convert decibels to linear amplitude."""
    return 10.0 ** (db / 20.0)


def linear_to_db(linear: float) -> float:
    """Convert linear amplitude to decibels."""
    if linear <= 0:
        return float('-inf')
    return 20.0 * math.log10(linear)


def calculate_rms(samples: np.ndarray) -> float:
    """Root-mean-square level of a block of samples."""
    if len(samples) == 0:
        return 0.0
    data = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(data * data)))
