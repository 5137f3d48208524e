"""
Configuration management for the SSTV encoder.

Holds encoder defaults (mode, sample rate, output format) with validation
and JSON persistence.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from .constants import (
    DEFAULT_BIT_DEPTH,
    DEFAULT_SAMPLE_RATE,
    MAX_SAMPLE_RATE,
    MIN_SAMPLE_RATE,
    SUPPORTED_BIT_DEPTHS,
)
from .export import IMAGE_FORMATS, ImageSaveConfig
from .modes import MODE_BY_NAME, normalize_mode_name

logger = logging.getLogger('sstvtx.config')


class ConfigValidationError(ValueError):
    """Raised when configuration values are invalid."""

    pass


@dataclass
class EncoderConfig:
    """Encoder defaults used by the convenience pipeline and HTTP routes."""

    mode: str = 'Robot36'
    sample_rate: int = DEFAULT_SAMPLE_RATE
    bit_depth: int = DEFAULT_BIT_DEPTH
    output_dir: str = './sstv_output'
    image_format: str = 'png'  # "png", "jpeg" or "bmp"
    jpeg_quality: int = 95
    preserve_metadata: bool = True
    memory_limit_mb: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration values after initialization."""
        self._validate()

    def _validate(self) -> None:
        if normalize_mode_name(self.mode) not in MODE_BY_NAME:
            raise ConfigValidationError(
                f"Invalid mode: {self.mode}. "
                f"Must be one of {', '.join(sorted({m.name for m in MODE_BY_NAME.values()}))}"
            )
        if not (MIN_SAMPLE_RATE <= self.sample_rate <= MAX_SAMPLE_RATE):
            raise ConfigValidationError(
                f"sample_rate must be between {MIN_SAMPLE_RATE} and "
                f"{MAX_SAMPLE_RATE} Hz, got {self.sample_rate}"
            )
        if self.bit_depth not in SUPPORTED_BIT_DEPTHS:
            raise ConfigValidationError(
                f"bit_depth must be one of {SUPPORTED_BIT_DEPTHS}, got {self.bit_depth}"
            )
        if self.image_format not in IMAGE_FORMATS:
            raise ConfigValidationError(
                f"image_format must be one of {tuple(IMAGE_FORMATS)}, got {self.image_format}"
            )
        if not (1 <= self.jpeg_quality <= 100):
            raise ConfigValidationError(
                f"jpeg_quality must be between 1 and 100, got {self.jpeg_quality}"
            )
        if self.memory_limit_mb is not None and self.memory_limit_mb <= 0:
            raise ConfigValidationError(
                f"memory_limit_mb must be positive, got {self.memory_limit_mb}"
            )

    def image_save_config(self) -> ImageSaveConfig:
        """How fitted images are saved under this configuration."""
        return ImageSaveConfig(
            format=self.image_format,
            jpeg_quality=self.jpeg_quality,
            preserve_metadata=self.preserve_metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'EncoderConfig':
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def save(self, path: str) -> bool:
        """Save configuration to JSON file.

        Args:
            path: File path to save configuration to

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            with open(path, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)
            logger.info(f"Configuration saved to {path}")
            return True
        except OSError as e:
            logger.error(f"Failed to save configuration to {path}: {e}")
            return False

    @classmethod
    def load(cls, path: str) -> Optional['EncoderConfig']:
        """Load configuration from JSON file.

        Returns:
            EncoderConfig instance or None if loading failed
        """
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            config = cls.from_dict(data)
            logger.info(f"Configuration loaded from {path}")
            return config
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {path}")
            return None
        except OSError as e:
            logger.error(f"Failed to read configuration from {path}: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file {path}: {e}")
            return None
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid configuration format in {path}: {e}")
            return None

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get default configuration file path."""
        return Path.home() / '.config' / 'sstvtx' / 'config.json'

    @classmethod
    def load_default(cls) -> 'EncoderConfig':
        """Load from the default path, or fall back to defaults."""
        path = cls.get_default_config_path()
        if path.exists():
            config = cls.load(str(path))
            if config is not None:
                return config
        return cls()
