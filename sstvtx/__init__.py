"""SSTV (Slow-Scan Television) transmit encoder.

Turns still images into SSTV audio for Scottie DX, Robot 36, PD 120 and
Martin M1, with a phase-continuous tone synthesizer so frequency changes
never click. Built on numpy, Pillow and scipy.
"""

from .audio import AudioGenerator, read_wav, write_wav
from .config import ConfigValidationError, EncoderConfig
from .constants import DEFAULT_SAMPLE_RATE, MAX_SAMPLE_RATE, MIN_SAMPLE_RATE, VERSION
from .errors import (
    ImageProcessingError,
    InvalidBitDepthError,
    InvalidSampleRateError,
    MemoryLimitError,
    NoProcessedImageError,
    OutputWriteError,
    SSTVError,
    UnsupportedModeError,
)
from .export import ImageSaveConfig
from .image_fitter import FitMetadata, FittedImage, fit_image
from .memory import (
    MemoryUsage,
    MemoryUsageMB,
    check_memory_requirements,
    estimate_memory_usage,
)
from .modes import ModeSpec, SSTVMode, get_mode_spec
from .modulator import SSTVModulator
from .pipeline import (
    enforce_memory_limit,
    estimate_file_size,
    generate_sstv_from_file,
    generate_sstv_from_image,
    generate_sstv_with_image_save,
    get_supported_modes,
    process_sstv_complete,
    process_with_config,
)
from .synth import SampleBuffer, SynthState, ToneSynthesizer

__version__ = VERSION

__all__ = [
    'AudioGenerator',
    'ConfigValidationError',
    'DEFAULT_SAMPLE_RATE',
    'EncoderConfig',
    'FitMetadata',
    'FittedImage',
    'ImageProcessingError',
    'ImageSaveConfig',
    'InvalidBitDepthError',
    'InvalidSampleRateError',
    'MAX_SAMPLE_RATE',
    'MIN_SAMPLE_RATE',
    'MemoryLimitError',
    'MemoryUsage',
    'MemoryUsageMB',
    'ModeSpec',
    'NoProcessedImageError',
    'OutputWriteError',
    'SSTVError',
    'SSTVMode',
    'SSTVModulator',
    'SampleBuffer',
    'SynthState',
    'ToneSynthesizer',
    'UnsupportedModeError',
    'check_memory_requirements',
    'estimate_file_size',
    'estimate_memory_usage',
    'fit_image',
    'generate_sstv_from_file',
    'generate_sstv_from_image',
    'generate_sstv_with_image_save',
    'get_mode_spec',
    'get_supported_modes',
    'process_sstv_complete',
    'process_with_config',
    'enforce_memory_limit',
    'read_wav',
    'write_wav',
]
