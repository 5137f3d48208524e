"""Shared fixtures for SSTV encoder tests."""

import numpy as np
import pytest
from PIL import Image

from sstvtx.synth import ToneSynthesizer


class RecordingSynth(ToneSynthesizer):
    """ToneSynthesizer that also records every (frequency, duration_ms, phase) request."""

    def __init__(self, sample_rate=8000):
        super().__init__(sample_rate)
        self.calls = []

    def emit(self, frequency, duration_ms, phase=None):
        self.calls.append((frequency, duration_ms, phase))
        return super().emit(frequency, duration_ms, phase)


@pytest.fixture
def recording_synth_cls():
    """Synthesizer class that records its tone requests."""
    return RecordingSynth


@pytest.fixture
def recorder():
    """Fresh recording synthesizer at 8 kHz."""
    return RecordingSynth(8000)


@pytest.fixture
def gradient_image():
    """64x48 RGB image with distinct values per row and column."""
    x = np.linspace(0, 255, 64, dtype=np.float64)
    y = np.linspace(0, 255, 48, dtype=np.float64)
    xx, yy = np.meshgrid(x, y)
    pixels = np.stack([xx, yy, 255 - xx], axis=-1).astype(np.uint8)
    return Image.fromarray(pixels, 'RGB')


@pytest.fixture
def png_file(tmp_path, gradient_image):
    """Gradient image saved as PNG."""
    path = tmp_path / 'input.png'
    gradient_image.save(path)
    return path
