"""VIS header and end-of-transmission tones.

The VIS (Vertical Interval Signaling) header opens every transmission:
a calibration preamble, seven data bits identifying the mode, an even
parity bit and a stop bit.
"""

from __future__ import annotations

from .constants import (
    END_TONES,
    FREQ_SYNC,
    FREQ_VIS_BIT_0,
    FREQ_VIS_BIT_1,
    VIS_BIT_MS,
    VIS_CODE_BITS,
    VIS_PREAMBLE,
)
from .synth import ToneSynthesizer


def _check_vis_code(vis_code: str) -> None:
    if len(vis_code) != VIS_CODE_BITS or set(vis_code) - {'0', '1'}:
        raise ValueError(f"VIS code must be {VIS_CODE_BITS} binary digits, got {vis_code!r}")


def vis_parity_frequency(vis_code: str) -> float:
    """Parity tone: 1300 Hz for an even count of ones, 1100 Hz for odd."""
    _check_vis_code(vis_code)
    ones = vis_code.count('1')
    return FREQ_VIS_BIT_0 if ones % 2 == 0 else FREQ_VIS_BIT_1


def vis_tones(vis_code: str) -> list[tuple[float, float]]:
    """Full VIS header as a list of (frequency_hz, duration_ms) pairs.

    Data bits are sent from string index 6 down to 0, i.e. the code
    string is written MSB-first and transmitted LSB-first.
    """
    _check_vis_code(vis_code)
    tones = list(VIS_PREAMBLE)
    for i in range(VIS_CODE_BITS - 1, -1, -1):
        freq = FREQ_VIS_BIT_1 if vis_code[i] == '1' else FREQ_VIS_BIT_0
        tones.append((freq, VIS_BIT_MS))
    tones.append((vis_parity_frequency(vis_code), VIS_BIT_MS))
    tones.append((FREQ_SYNC, VIS_BIT_MS))  # stop bit
    return tones


def encode_vis_header(synth: ToneSynthesizer, vis_code: str) -> int:
    """Emit the VIS header; returns the number of samples written."""
    return synth.emit_sequence(vis_tones(vis_code))


def encode_end_tones(synth: ToneSynthesizer) -> int:
    """Emit the fixed end-of-transmission tone sequence."""
    return synth.emit_sequence(END_TONES)
