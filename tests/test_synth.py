"""Unit tests for the phase-continuous tone synthesizer."""

import math
import random

import numpy as np
import pytest

from sstvtx.constants import MAX_SAMPLE_RATE, MIN_SAMPLE_RATE
from sstvtx.errors import InvalidSampleRateError
from sstvtx.synth import SampleBuffer, SynthState, ToneSynthesizer


@pytest.fixture
def synth():
    """Synthesizer at 8 kHz with fresh state."""
    return ToneSynthesizer(sample_rate=8000)


class TestSampleCount:
    """Tests for per-tone sample counts and the fractional carry."""

    def test_whole_sample_duration(self, synth):
        assert synth.emit(1500, 1.0) == 8
        assert synth.state.carry == pytest.approx(0.0)

    def test_carry_accumulates_before_emitting(self):
        synth = ToneSynthesizer(sample_rate=6000)
        # 0.1375 ms at 6 kHz = 0.825 samples
        assert synth.emit(1500, 0.1375) == 0
        assert synth.state.carry == pytest.approx(0.825)
        assert synth.emit(1500, 0.1375) == 1
        assert synth.state.carry == pytest.approx(0.65)

    def test_no_drift_over_many_short_tones(self):
        synth = ToneSynthesizer(sample_rate=6000)
        total = sum(synth.emit(1900, 0.1375) for _ in range(1000))
        assert abs(total - 825) <= 1
        assert len(synth.buffer) == total

    def test_carry_stays_below_one(self):
        synth = ToneSynthesizer(sample_rate=11025)
        rng = random.Random(7)
        for _ in range(500):
            synth.emit(rng.uniform(1100, 2300), rng.uniform(0.05, 2.0))
            assert 0.0 <= synth.state.carry < 1.0


class TestWaveform:
    """Tests for generated sample values."""

    def test_first_tone_starts_at_zero_phase(self, synth):
        synth.emit(1000, 1.0)
        samples = synth.buffer.to_array()
        assert samples.dtype == np.int16
        assert samples.tolist() == [0, 23170, 32767, 23170, 0, -23170, -32767, -23170]

    def test_explicit_phase_overrides_recovery(self, synth):
        synth.emit(1700, 0.7)
        before = len(synth.buffer)
        synth.emit(1200, 9.0, phase=0.0)
        assert synth.last_phase == 0.0
        assert synth.buffer.to_array()[before] == 0

    def test_amplitude_within_int16(self, synth):
        synth.emit(2300, 50.0)
        samples = synth.buffer.to_array()
        assert samples.max() <= 32767
        assert samples.min() >= -32767


class TestPhaseContinuity:
    """Tests for phase recovery between consecutive tones."""

    def test_recovered_phase_matches_previous_value(self, synth):
        rng = random.Random(42)
        for _ in range(200):
            prev_value = synth.state.prev_value
            prev_cos = synth.state.prev_cos
            synth.emit(rng.uniform(1100, 2300), rng.uniform(0.1, 5.0))
            phi = synth.last_phase
            assert math.sin(phi) == pytest.approx(prev_value, abs=1e-9)
            if abs(prev_cos) > 1e-6:
                assert math.copysign(1.0, math.cos(phi)) == math.copysign(1.0, prev_cos)

    def test_first_sample_continues_previous_tone(self, synth):
        synth.emit(1234, 3.7)
        end_value = synth.state.prev_value
        before = len(synth.buffer)
        synth.emit(2100, 2.3)
        first = int(synth.buffer.to_array()[before])
        assert abs(first - round(32767 * end_value)) <= 1

    def test_quadrant_selection_for_negative_cosine(self):
        state = SynthState(prev_value=0.5, prev_cos=-0.8)
        phi = state.recover_phase()
        assert phi == pytest.approx(5 * math.pi / 6)
        assert math.cos(phi) < 0

    def test_quadrant_selection_for_positive_cosine(self):
        state = SynthState(prev_value=-0.5, prev_cos=0.3)
        assert state.recover_phase() == pytest.approx(-math.pi / 6)


class TestSilence:
    """Tests for zero-frequency tones."""

    def test_silence_after_reset_is_zero(self, synth):
        synth.silence(10.0)
        assert not synth.buffer.to_array().any()

    def test_silence_holds_previous_value(self, synth):
        synth.state.prev_value = 0.5
        synth.state.prev_cos = 0.866
        synth.silence(1.0)
        samples = synth.buffer.to_array()
        expected = int(np.rint(32767 * np.sin(synth.last_phase)))
        assert expected != 0
        assert samples.tolist() == [expected] * 8


class TestLifecycle:
    """Tests for reset and validation."""

    def test_reset_clears_state_and_buffer(self, synth):
        synth.emit(1900, 10.0)
        synth.reset()
        assert len(synth.buffer) == 0
        assert synth.state == SynthState()
        assert synth.tone_count == 0

    def test_emit_sequence_returns_total(self, synth):
        total = synth.emit_sequence([(1900, 100.0), (1200, 10.0)])
        assert total == 880
        assert synth.tone_count == 2

    def test_rejects_negative_duration(self, synth):
        """Test that a negative duration is refused without touching state."""
        synth.emit(1900, 10.0)
        before = len(synth.buffer)
        carry = synth.state.carry
        with pytest.raises(ValueError):
            synth.emit(1900, -5.0)
        assert len(synth.buffer) == before
        assert synth.state.carry == carry
        assert synth.tone_count == 1

    @pytest.mark.parametrize('rate', [500, 250000])
    def test_rejects_out_of_range_rate(self, rate):
        with pytest.raises(InvalidSampleRateError) as exc_info:
            ToneSynthesizer(sample_rate=rate)
        assert exc_info.value.sample_rate == rate
        assert exc_info.value.min_rate == MIN_SAMPLE_RATE
        assert exc_info.value.max_rate == MAX_SAMPLE_RATE
        assert str(rate) in str(exc_info.value)

    def test_accepts_bounds(self):
        assert ToneSynthesizer(MIN_SAMPLE_RATE).sample_rate == MIN_SAMPLE_RATE
        assert ToneSynthesizer(MAX_SAMPLE_RATE).sample_rate == MAX_SAMPLE_RATE


class TestSampleBuffer:
    """Tests for the append-only sample store."""

    def test_grows_past_initial_capacity(self):
        buf = SampleBuffer(capacity=4)
        buf.append(np.arange(3, dtype=np.int16))
        buf.append(np.arange(3, 10, dtype=np.int16))
        assert len(buf) == 10
        assert buf.to_array().tolist() == list(range(10))
        assert buf.nbytes == 20

    def test_view_is_read_only(self):
        buf = SampleBuffer()
        buf.append(np.ones(5, dtype=np.int16))
        view = buf.view()
        with pytest.raises(ValueError):
            view[0] = 3

    def test_clear(self):
        buf = SampleBuffer()
        buf.append(np.ones(5, dtype=np.int16))
        buf.clear()
        assert len(buf) == 0
        assert buf.to_array().size == 0
