"""SSTV modulation orchestrator.

Sequences a full transmission for one image:

    silence -> VIS header -> mode scan -> end tones -> silence

and keeps the run's outputs (samples, fitted image, fit metadata) until
they are cleared or replaced by the next run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from .audio import write_wav
from .constants import (
    DEFAULT_BIT_DEPTH,
    DEFAULT_SAMPLE_RATE,
    END_TONES,
    METADATA_OVERHEAD_BYTES,
    SILENCE_MS,
)
from .errors import NoProcessedImageError
from .export import (
    ImageSaveConfig,
    auto_image_filename,
    ensure_directory,
    save_image,
    write_metadata_sidecar,
)
from .image_fitter import FitMetadata, FittedImage, ImageSource, fit_image
from .memory import MemoryUsage
from .modes import ModeSpec, SSTVMode, get_mode_spec
from .scanners import scan_duration_ms, scan_image
from .synth import ToneSynthesizer, validate_sample_rate
from .vis import encode_end_tones, encode_vis_header, vis_tones

logger = logging.getLogger('sstvtx.modulator')

PathLike = Union[str, Path]


def transmission_duration_ms(mode: Union[SSTVMode, ModeSpec, str]) -> float:
    """Scheduled length of a full transmission, silences included."""
    spec = get_mode_spec(mode)
    header = sum(ms for _freq, ms in vis_tones(spec.vis_code))
    tail = sum(ms for _freq, ms in END_TONES)
    return 2 * SILENCE_MS + header + scan_duration_ms(spec) + tail


class SSTVModulator:
    """Convert images to SSTV audio for one mode.

    Usage::

        modulator = SSTVModulator(SSTVMode.ROBOT_36, sample_rate=11025)
        samples = modulator.modulate_image(Image.open('photo.jpg'))
        modulator.export_wav('photo.wav')
    """

    def __init__(self, mode: Union[SSTVMode, ModeSpec, str],
                 sample_rate: int = DEFAULT_SAMPLE_RATE):
        self._spec = get_mode_spec(mode)
        self._sample_rate = validate_sample_rate(sample_rate)
        self._synth = ToneSynthesizer(self._sample_rate)
        self._fitted: Optional[FittedImage] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def mode(self) -> SSTVMode:
        return self._spec.mode

    @property
    def mode_spec(self) -> ModeSpec:
        return self._spec

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def samples(self) -> np.ndarray:
        """Read-only view of the last run's samples."""
        return self._synth.buffer.view()

    @property
    def sample_count(self) -> int:
        return len(self._synth.buffer)

    @property
    def duration_seconds(self) -> float:
        """Actual length of the generated audio."""
        return len(self._synth.buffer) / self._sample_rate

    @property
    def fitted_image(self) -> Optional[FittedImage]:
        return self._fitted

    @property
    def processed_image(self) -> Optional[Image.Image]:
        return self._fitted.image if self._fitted else None

    @property
    def metadata(self) -> Optional[FitMetadata]:
        return self._fitted.metadata if self._fitted else None

    def with_sample_rate(self, sample_rate: int) -> 'SSTVModulator':
        """Change the sample rate; drops any retained audio."""
        self._sample_rate = validate_sample_rate(sample_rate)
        self._synth = ToneSynthesizer(self._sample_rate)
        return self

    # ------------------------------------------------------------------
    # Modulation
    # ------------------------------------------------------------------

    def modulate_image(self, image: ImageSource) -> np.ndarray:
        """Encode ``image`` as a complete SSTV transmission.

        The image is fitted onto the mode canvas first; if that fails the
        previous run's outputs are left untouched.

        Args:
            image: Pillow image or (H, W, 3) uint8 array of any size.

        Returns:
            The transmission as an int16 array.
        """
        fitted = fit_image(image, self._spec)

        logger.info(
            f"Modulating {fitted.metadata.original_dimensions[0]}x"
            f"{fitted.metadata.original_dimensions[1]} image as {self._spec.name} "
            f"at {self._sample_rate} Hz"
        )

        synth = ToneSynthesizer(self._sample_rate)
        synth.silence(SILENCE_MS)
        header = encode_vis_header(synth, self._spec.vis_code)
        logger.debug(f"VIS header: {header} samples")
        scan_image(self._spec, fitted.pixels, synth)
        encode_end_tones(synth)
        synth.silence(SILENCE_MS)

        self._synth = synth
        self._fitted = fitted

        logger.info(
            f"{self._spec.name} transmission complete: {len(synth.buffer)} samples "
            f"({self.duration_seconds:.2f} s, {synth.tone_count} tones)"
        )
        return synth.buffer.to_array()

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def export_wav(self, path: PathLike, bit_depth: int = DEFAULT_BIT_DEPTH) -> Path:
        """Write the last run's samples to a WAV file."""
        return write_wav(path, self._synth.buffer.view(), self._sample_rate, bit_depth)

    def _require_fitted(self) -> FittedImage:
        if self._fitted is None:
            raise NoProcessedImageError()
        return self._fitted

    def save_metadata(self, image_path: PathLike) -> Path:
        """Write the JSON sidecar for an image saved at ``image_path``."""
        fitted = self._require_fitted()
        return write_metadata_sidecar(image_path, fitted.metadata, self._sample_rate)

    def save_processed_image(self, path: PathLike,
                             config: Optional[ImageSaveConfig] = None) -> Path:
        """Save the fitted image (and its sidecar when configured).

        Raises:
            NoProcessedImageError: No modulation run has completed.
        """
        fitted = self._require_fitted()
        config = config or ImageSaveConfig()
        path = save_image(fitted.image, path, config)
        if config.preserve_metadata:
            self.save_metadata(path)
        return path

    def save_processed_image_auto(self, base_dir: PathLike,
                                  config: Optional[ImageSaveConfig] = None) -> Path:
        """Save the fitted image under an auto-generated name in ``base_dir``."""
        fitted = self._require_fitted()
        config = config or ImageSaveConfig()
        directory = ensure_directory(base_dir)
        return self.save_processed_image(
            directory / auto_image_filename(fitted.metadata, config), config)

    def batch_process(self, image: ImageSource, output_dir: PathLike, base_name: str,
                      image_config: Optional[ImageSaveConfig] = None,
                      bit_depth: int = DEFAULT_BIT_DEPTH) -> tuple[Path, Path]:
        """Modulate ``image`` and write both the WAV and the fitted image.

        Returns:
            Tuple of (audio_path, image_path).
        """
        directory = ensure_directory(output_dir)
        self.modulate_image(image)

        timestamp = self._require_fitted().metadata.timestamp
        audio_name = f"{base_name}_{self._spec.name}_{timestamp}_{self._sample_rate}.wav"
        audio_path = self.export_wav(directory / audio_name, bit_depth)

        config = (image_config or ImageSaveConfig()).with_suffix(base_name)
        image_path = self.save_processed_image_auto(directory, config)
        return audio_path, image_path

    # ------------------------------------------------------------------
    # Memory bookkeeping
    # ------------------------------------------------------------------

    def clear_audio_memory(self) -> None:
        self._synth.reset()

    def clear_image_memory(self) -> None:
        self._fitted = None

    def clear_memory(self) -> None:
        """Drop all retained outputs and reset phase state."""
        self.clear_audio_memory()
        self.clear_image_memory()

    def memory_usage(self) -> MemoryUsage:
        return MemoryUsage(
            audio_samples_bytes=self._synth.buffer.nbytes,
            processed_image_bytes=self._fitted.nbytes if self._fitted else 0,
            metadata_bytes=METADATA_OVERHEAD_BYTES if self._fitted else 0,
        )

    def should_clear_memory(self, threshold_mb: float) -> bool:
        return self.memory_usage().total_bytes > threshold_mb * 1024 * 1024

    def auto_memory_management(self, threshold_mb: float) -> bool:
        """Clear retained outputs when above ``threshold_mb``; returns True if cleared."""
        if self.should_clear_memory(threshold_mb):
            logger.info(f"Memory above {threshold_mb} MB, clearing retained outputs")
            self.clear_memory()
            return True
        return False
