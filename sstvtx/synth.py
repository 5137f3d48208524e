"""Phase-continuous tone synthesizer.

Turns (frequency, duration) requests into signed 16-bit samples. Two
pieces of state persist across every tone of a transmission:

- the final sample value and cosine of the previous tone, from which the
  next tone's starting phase is recovered so the waveform never jumps;
- the fractional-sample carry, so thousands of sub-millisecond pixel
  tones add up to the right total length instead of drifting.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .constants import (
    DEFAULT_SAMPLE_RATE,
    FREQ_SILENCE,
    MAX_SAMPLE_RATE,
    MIN_SAMPLE_RATE,
    SAMPLE_AMPLITUDE,
)
from .errors import InvalidSampleRateError

logger = logging.getLogger('sstvtx.synth')

# Initial capacity of a sample buffer (samples); grows by doubling
_INITIAL_CAPACITY = 1 << 16


def validate_sample_rate(sample_rate: int) -> int:
    """Check a sample rate against the supported range.

    Returns:
        The sample rate as an int.

    Raises:
        InvalidSampleRateError: If the rate is outside MIN/MAX_SAMPLE_RATE.
    """
    if not (MIN_SAMPLE_RATE <= sample_rate <= MAX_SAMPLE_RATE):
        raise InvalidSampleRateError(sample_rate, MIN_SAMPLE_RATE, MAX_SAMPLE_RATE)
    return int(sample_rate)


@dataclass
class SynthState:
    """Running phase state threaded through every emitted tone.

    Attributes:
        prev_value: sin() of the previous tone's final phase.
        prev_cos: cos() of the previous tone's final phase.
        carry: Accumulated fractional samples not yet emitted.
    """
    prev_value: float = 0.0
    prev_cos: float = 1.0
    carry: float = 0.0

    def reset(self) -> None:
        self.prev_value = 0.0
        self.prev_cos = 1.0
        self.carry = 0.0

    def recover_phase(self) -> float:
        """Starting phase that continues the previous tone.

        asin() alone only covers [-pi/2, pi/2]; the sign of the previous
        cosine picks the quadrant so slope direction is preserved too.
        """
        sign = 1.0 if self.prev_cos >= 0.0 else -1.0
        return sign * math.asin(self.prev_value) + (abs(sign - 1.0) / 2.0) * math.pi

    def advance(self, final_phase: float) -> None:
        self.prev_value = math.sin(final_phase)
        self.prev_cos = math.cos(final_phase)


class SampleBuffer:
    """Append-only int16 sample store for one transmission."""

    def __init__(self, capacity: int = _INITIAL_CAPACITY):
        self._data = np.empty(max(1, capacity), dtype=np.int16)
        self._length = 0

    def __len__(self) -> int:
        return self._length

    @property
    def nbytes(self) -> int:
        return self._length * self._data.itemsize

    def append(self, samples: np.ndarray) -> None:
        n = len(samples)
        if n == 0:
            return
        needed = self._length + n
        if needed > len(self._data):
            capacity = len(self._data)
            while capacity < needed:
                capacity *= 2
            grown = np.empty(capacity, dtype=np.int16)
            grown[:self._length] = self._data[:self._length]
            self._data = grown
        self._data[self._length:needed] = samples
        self._length = needed

    def to_array(self) -> np.ndarray:
        """Copy of the samples emitted so far."""
        return self._data[:self._length].copy()

    def view(self) -> np.ndarray:
        """Read-only view of the samples (no copy)."""
        view = self._data[:self._length]
        view.flags.writeable = False
        return view

    def clear(self) -> None:
        self._data = np.empty(_INITIAL_CAPACITY, dtype=np.int16)
        self._length = 0


class ToneSynthesizer:
    """Emit phase-continuous tones into a sample buffer.

    Usage::

        synth = ToneSynthesizer(sample_rate=11025)
        synth.emit(1900, 300)
        synth.emit(1200, 10)
        samples = synth.buffer.to_array()
    """

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE,
                 state: Optional[SynthState] = None,
                 buffer: Optional[SampleBuffer] = None):
        self._sample_rate = validate_sample_rate(sample_rate)
        self.state = state if state is not None else SynthState()
        self.buffer = buffer if buffer is not None else SampleBuffer()
        self._last_phase = 0.0
        self._tone_count = 0
        self._index = np.arange(0, dtype=np.float64)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def last_phase(self) -> float:
        """Starting phase used by the most recent tone."""
        return self._last_phase

    @property
    def tone_count(self) -> int:
        return self._tone_count

    def reset(self) -> None:
        """Clear phase state, timing carry and emitted samples."""
        self.state.reset()
        self.buffer.clear()
        self._last_phase = 0.0
        self._tone_count = 0

    def sample_count(self, duration_ms: float) -> int:
        """Number of samples for the next tone, folding in the carry.

        Mutates the carry, so call exactly once per emitted tone.
        """
        if duration_ms < 0:
            raise ValueError(f"Tone duration must be non-negative, got {duration_ms} ms")
        exact = self._sample_rate * duration_ms / 1000.0
        n = int(exact)
        self.state.carry += exact - n
        if self.state.carry >= 1.0:
            whole = math.floor(self.state.carry)
            n += int(whole)
            self.state.carry -= whole
        return n

    def _indices(self, n: int) -> np.ndarray:
        if n > len(self._index):
            self._index = np.arange(max(n, 2 * len(self._index)), dtype=np.float64)
        return self._index[:n]

    def emit(self, frequency: float, duration_ms: float,
             phase: Optional[float] = None) -> int:
        """Append one tone to the buffer.

        Args:
            frequency: Tone frequency in Hz (0 for silence).
            duration_ms: Nominal duration in milliseconds.
            phase: Explicit starting phase in radians. When None the phase
                is recovered from the previous tone.

        Returns:
            Number of samples emitted.
        """
        n = self.sample_count(duration_ms)
        phi = self.state.recover_phase() if phase is None else phase

        omega = 2.0 * math.pi * frequency
        if n:
            phases = omega * self._indices(n) / self._sample_rate + phi
            samples = np.rint(SAMPLE_AMPLITUDE * np.sin(phases)).astype(np.int16)
            self.buffer.append(samples)

        self.state.advance(omega * n / self._sample_rate + phi)
        self._last_phase = phi
        self._tone_count += 1
        return n

    def emit_sequence(self, tones: Iterable[tuple[float, float]]) -> int:
        """Emit (frequency, duration_ms) pairs in order; returns samples emitted."""
        total = 0
        for frequency, duration_ms in tones:
            total += self.emit(frequency, duration_ms)
        return total

    def silence(self, duration_ms: float) -> int:
        """Emit a zero-frequency tone.

        The phase is still recovered from the previous tone, so the output
        holds sin(phi) rather than dropping to a hard zero.
        """
        return self.emit(FREQ_SILENCE, duration_ms)
