"""Tests for mode lookup, estimates and the one-shot pipeline helpers."""

from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image
from scipy.io import wavfile

from sstvtx.audio import read_wav
from sstvtx.config import EncoderConfig
from sstvtx.errors import ImageProcessingError, MemoryLimitError, UnsupportedModeError
from sstvtx.export import ImageSaveConfig
from sstvtx.memory import check_memory_requirements, estimate_memory_usage
from sstvtx.modes import ALL_MODES, SSTVMode, get_mode_spec
from sstvtx.pipeline import (
    enforce_memory_limit,
    estimate_file_size,
    generate_sstv_from_file,
    generate_sstv_from_image,
    generate_sstv_with_image_save,
    get_supported_modes,
    load_image,
    process_sstv_complete,
    process_with_config,
)


@pytest.fixture
def large_png_file(tmp_path):
    """A 1000x1000 source, about 3 MB once decoded."""
    path = tmp_path / 'large.png'
    Image.new('RGB', (1000, 1000), (40, 90, 160)).save(path)
    return path


class TestModes:
    """Tests for the mode registry."""

    @pytest.mark.parametrize('name,mode', [
        ('Robot36', SSTVMode.ROBOT_36),
        ('robot-36', SSTVMode.ROBOT_36),
        ('PD 120', SSTVMode.PD_120),
        ('SCOTTIE_DX', SSTVMode.SCOTTIE_DX),
        ('Martin1', SSTVMode.MARTIN_M1),
    ])
    def test_lookup_by_name(self, name, mode):
        assert get_mode_spec(name).mode is mode

    def test_unknown_name(self):
        with pytest.raises(UnsupportedModeError):
            get_mode_spec('Scottie1')

    def test_supported_modes_listing(self):
        modes = get_supported_modes()
        assert len(modes) == 4
        assert (SSTVMode.ROBOT_36, 'Robot-36', (320, 240), 36.0) in modes
        assert (SSTVMode.PD_120, 'PD-120', (640, 496), 120.0) in modes

    def test_vis_codes_are_distinct(self):
        codes = [spec.vis_code for spec in ALL_MODES.values()]
        assert len(set(codes)) == len(codes)


class TestEstimates:
    """Tests for file size and memory estimates."""

    def test_file_size(self):
        assert estimate_file_size(SSTVMode.ROBOT_36, 44100) == 1587600 * 2 + 44
        assert estimate_file_size('Robot36', 44100, bit_depth=32) == 1587600 * 4 + 44

    def test_file_size_rejects_bad_parameters(self):
        with pytest.raises(ValueError):
            estimate_file_size(SSTVMode.ROBOT_36, 500)
        with pytest.raises(ValueError):
            estimate_file_size(SSTVMode.ROBOT_36, 8000, bit_depth=8)

    def test_memory_estimate_components(self):
        required = estimate_memory_usage(640, 480, SSTVMode.ROBOT_36, 8000)
        source = 640 * 480 * 3
        target = 320 * 240 * 3
        audio = 8000 * 36 * 2
        assert required == source + target + audio + 1024

    def test_memory_check_fits(self):
        fits, required_mb, suggested = check_memory_requirements(
            640, 480, SSTVMode.ROBOT_36, 8000)
        assert fits
        assert required_mb < 100
        assert suggested is None

    def test_memory_check_suggests_smaller_source(self):
        """Test that an oversized job gets a reduced size suggestion."""
        fits, required_mb, suggested = check_memory_requirements(
            8000, 6000, SSTVMode.PD_120, 44100)
        assert not fits
        assert required_mb > 100
        assert suggested[0] < 8000 and suggested[1] < 6000
        assert min(suggested) >= 100


class TestPipeline:
    """Tests for the convenience entry points."""

    def test_load_image(self, png_file):
        image = load_image(png_file)
        assert image.mode == 'RGB'
        assert image.size == (64, 48)

    def test_load_missing_image(self, tmp_path):
        with pytest.raises(ImageProcessingError):
            load_image(tmp_path / 'missing.png')

    def test_load_non_image(self, tmp_path):
        path = tmp_path / 'notes.png'
        path.write_text('hello')
        with pytest.raises(ImageProcessingError):
            load_image(path)

    def test_generate_from_file(self, png_file, tmp_path):
        out = generate_sstv_from_file(png_file, tmp_path / 'out.wav', 'Robot36', 1000)
        samples, rate = read_wav(out)
        assert rate == 1000
        assert abs(len(samples) - 39010) <= 2

    def test_generate_from_image(self, gradient_image, tmp_path):
        out = generate_sstv_from_image(gradient_image, tmp_path / 'out.wav',
                                       SSTVMode.ROBOT_36, 1000)
        assert out.exists()

    def test_generate_with_image_save(self, png_file, tmp_path):
        audio_path, image_path = generate_sstv_with_image_save(
            png_file, tmp_path / 'out', 'shot', 'Robot36', ImageSaveConfig.bmp(), 1000)
        assert audio_path.exists()
        assert image_path.suffix == '.bmp'
        assert image_path.with_suffix('.json').exists()

    def test_process_complete(self, png_file, tmp_path):
        audio_path, image_path, usage = process_sstv_complete(
            png_file, tmp_path / 'out', 'job', SSTVMode.ROBOT_36,
            memory_limit_mb=50, sample_rate=1000)
        assert audio_path.exists() and image_path.exists()
        assert usage.total_mb > 0
        assert usage.processed_image_mb == pytest.approx(320 * 240 * 3 / (1024 * 1024))

    def test_process_complete_over_limit(self, png_file, tmp_path):
        """Test that a job over the memory limit is refused before encoding."""
        with patch('sstvtx.pipeline.check_memory_requirements',
                   return_value=(False, 500.0, (100, 100))):
            with pytest.raises(MemoryLimitError) as exc_info:
                process_sstv_complete(png_file, tmp_path / 'out', 'job',
                                      SSTVMode.ROBOT_36, memory_limit_mb=50,
                                      sample_rate=1000)
        assert exc_info.value.limit_mb == 50
        assert exc_info.value.required_bytes == 500 * 1024 * 1024
        assert not (tmp_path / 'out').exists()

    def test_process_complete_rejects_bad_bit_depth(self, png_file, tmp_path):
        with pytest.raises(ValueError):
            process_sstv_complete(png_file, tmp_path / 'out', 'job', 'Robot36',
                                  sample_rate=1000, bit_depth=24)
        assert not (tmp_path / 'out').exists()


class TestMemoryLimit:
    """Tests for refusing jobs above a memory limit."""

    def test_no_limit_accepts_anything(self):
        enforce_memory_limit(8000, 6000, SSTVMode.PD_120, 44100, None)

    def test_within_limit(self):
        enforce_memory_limit(64, 48, SSTVMode.ROBOT_36, 1000, 1)

    def test_over_limit(self):
        with pytest.raises(MemoryLimitError) as exc_info:
            enforce_memory_limit(1000, 1000, SSTVMode.ROBOT_36, 1000, 1)
        assert exc_info.value.limit_mb == 1
        assert exc_info.value.required_bytes > 1024 * 1024


class TestProcessWithConfig:
    """Tests for running a complete job from an EncoderConfig."""

    def test_settings_come_from_config(self, png_file, tmp_path):
        """Test that output dir, format, metadata flag and rate are all honoured."""
        out_dir = tmp_path / 'out'
        config = EncoderConfig(output_dir=str(out_dir), image_format='bmp',
                               preserve_metadata=False, sample_rate=1000, bit_depth=32)
        audio_path, image_path, _usage = process_with_config(png_file, 'job', config)

        assert audio_path.parent == out_dir
        assert image_path.parent == out_dir
        assert image_path.suffix == '.bmp'
        assert not image_path.with_suffix('.json').exists()
        assert list(out_dir.glob('*.json')) == []

        rate, data = wavfile.read(str(audio_path))
        assert rate == 1000
        assert data.dtype == np.int32

    def test_jpeg_with_sidecar(self, png_file, tmp_path):
        config = EncoderConfig(output_dir=str(tmp_path), image_format='jpeg',
                               jpeg_quality=60, sample_rate=1000)
        _audio_path, image_path, _usage = process_with_config(png_file, 'job', config)
        assert image_path.suffix == '.jpg'
        assert image_path.with_suffix('.json').exists()

    def test_memory_limit_from_config(self, large_png_file, tmp_path):
        """Test that the configured memory limit refuses a large source."""
        out_dir = tmp_path / 'out'
        config = EncoderConfig(output_dir=str(out_dir), memory_limit_mb=1, sample_rate=1000)
        with pytest.raises(MemoryLimitError):
            process_with_config(large_png_file, 'job', config)
        assert not out_dir.exists()

    def test_falls_back_to_default_config(self, png_file, tmp_path, monkeypatch):
        config = EncoderConfig(output_dir=str(tmp_path / 'default'), sample_rate=1000)
        monkeypatch.setattr(EncoderConfig, 'load_default', classmethod(lambda cls: config))
        audio_path, _image_path, _usage = process_with_config(png_file, 'job')
        assert audio_path.parent == tmp_path / 'default'
