"""Per-mode scan engines.

Each engine walks a fitted (height, width, 3) uint8 image in the order its
protocol mandates and issues one tone per pixel per channel, framed by
the mode's sync, porch and separator pulses. ``scan_image`` is the one
place a mode is mapped to its engine.
"""

from __future__ import annotations

import logging
from typing import Callable, Union

import numpy as np

from .color import split_planes, value_to_frequency, yuv_planes
from .constants import FREQ_BLACK, FREQ_LEADER, FREQ_SYNC, FREQ_WHITE
from .modes import ModeSpec, ScanAlgorithm, SSTVMode, get_mode_spec
from .synth import ToneSynthesizer

logger = logging.getLogger('sstvtx.scanners')

# Scottie DX
SCOTTIE_SYNC_MS = 9.0
SCOTTIE_SEPARATOR_MS = 1.5
SCOTTIE_PIXEL_MS = 1.08

# Robot 36
ROBOT_SYNC_MS = 9.0
ROBOT_PORCH_MS = 3.0
ROBOT_Y_PIXEL_MS = 0.275
ROBOT_SEPARATOR_MS = 4.5
ROBOT_CHROMA_PORCH_MS = 1.5
ROBOT_CHROMA_PIXEL_MS = 0.1375

# PD 120
PD_SYNC_MS = 20.0
PD_PORCH_MS = 2.08
PD_PIXEL_MS = 0.19

# Martin M1
MARTIN_SYNC_MS = 4.862
MARTIN_SEPARATOR_MS = 0.572
MARTIN_PIXEL_MS = 0.4576

ScanFunc = Callable[[np.ndarray, ToneSynthesizer], None]


def _emit_row(synth: ToneSynthesizer, values: np.ndarray, duration_ms: float) -> None:
    """Emit one tone per value of a row."""
    for freq in value_to_frequency(values).tolist():
        synth.emit(freq, duration_ms)


def _next_row(plane: np.ndarray, row: int) -> np.ndarray:
    """Row below ``row``, or ``row`` itself at the bottom edge."""
    return plane[row + 1] if row + 1 < plane.shape[0] else plane[row]


def _averaged(plane: np.ndarray, row: int) -> np.ndarray:
    return (plane[row] + _next_row(plane, row)) / 2.0


def scan_scottie_dx(pixels: np.ndarray, synth: ToneSynthesizer) -> None:
    """Two-field interleave: G, B, then the sync pulse mid-line, then R.

    The single leading sync pulse starts at phase 0 instead of continuing
    from the VIS stop bit.
    """
    red, green, blue = split_planes(pixels)

    synth.emit(FREQ_SYNC, SCOTTIE_SYNC_MS, phase=0.0)

    for row in range(pixels.shape[0]):
        synth.emit(FREQ_BLACK, SCOTTIE_SEPARATOR_MS)
        _emit_row(synth, green[row], SCOTTIE_PIXEL_MS)
        synth.emit(FREQ_BLACK, SCOTTIE_SEPARATOR_MS)
        _emit_row(synth, blue[row], SCOTTIE_PIXEL_MS)
        synth.emit(FREQ_SYNC, SCOTTIE_SYNC_MS)
        synth.emit(FREQ_BLACK, SCOTTIE_SEPARATOR_MS)
        _emit_row(synth, red[row], SCOTTIE_PIXEL_MS)


def scan_robot36(pixels: np.ndarray, synth: ToneSynthesizer) -> None:
    """Parity interleave: Y every line, R-Y on even lines, B-Y on odd lines.

    Chroma is averaged with the following line (2:1 vertical subsampling).
    """
    y, ry, by = yuv_planes(pixels)

    for row in range(pixels.shape[0]):
        synth.emit(FREQ_SYNC, ROBOT_SYNC_MS)
        synth.emit(FREQ_BLACK, ROBOT_PORCH_MS)
        _emit_row(synth, y[row], ROBOT_Y_PIXEL_MS)

        if row % 2 == 0:
            synth.emit(FREQ_BLACK, ROBOT_SEPARATOR_MS)
            synth.emit(FREQ_LEADER, ROBOT_CHROMA_PORCH_MS)
            _emit_row(synth, _averaged(ry, row), ROBOT_CHROMA_PIXEL_MS)
        else:
            synth.emit(FREQ_WHITE, ROBOT_SEPARATOR_MS)
            synth.emit(FREQ_LEADER, ROBOT_CHROMA_PORCH_MS)
            _emit_row(synth, _averaged(by, row), ROBOT_CHROMA_PIXEL_MS)


def scan_pd120(pixels: np.ndarray, synth: ToneSynthesizer) -> None:
    """Dual-row grouping: Y(n), R-Y(n, n+1), B-Y(n, n+1), Y(n+1)."""
    y, ry, by = yuv_planes(pixels)
    height = pixels.shape[0]

    for row in range(0, height, 2):
        synth.emit(FREQ_SYNC, PD_SYNC_MS)
        synth.emit(FREQ_BLACK, PD_PORCH_MS)
        _emit_row(synth, y[row], PD_PIXEL_MS)
        _emit_row(synth, _averaged(ry, row), PD_PIXEL_MS)
        _emit_row(synth, _averaged(by, row), PD_PIXEL_MS)
        if row + 1 < height:
            _emit_row(synth, y[row + 1], PD_PIXEL_MS)


def scan_martin_m1(pixels: np.ndarray, synth: ToneSynthesizer) -> None:
    """Single-row grouping: sync, then G, B, R each followed by a separator."""
    red, green, blue = split_planes(pixels)

    for row in range(pixels.shape[0]):
        synth.emit(FREQ_SYNC, MARTIN_SYNC_MS)
        synth.emit(FREQ_BLACK, MARTIN_SEPARATOR_MS)
        for channel in (green, blue, red):
            _emit_row(synth, channel[row], MARTIN_PIXEL_MS)
            synth.emit(FREQ_BLACK, MARTIN_SEPARATOR_MS)


SCANNERS: dict[ScanAlgorithm, ScanFunc] = {
    ScanAlgorithm.TWO_FIELD_INTERLEAVE: scan_scottie_dx,
    ScanAlgorithm.PARITY_INTERLEAVE: scan_robot36,
    ScanAlgorithm.DUAL_ROW_GROUPED: scan_pd120,
    ScanAlgorithm.SINGLE_ROW_GROUPED: scan_martin_m1,
}


def scan_duration_ms(mode: Union[SSTVMode, ModeSpec, str]) -> float:
    """Scheduled length of a mode's image scan from its timing constants.

    This is what the emitted scan adds up to; it can differ from the
    mode's nominal duration by up to a few seconds (PD 120 runs long,
    Scottie DX and Martin M1 slightly short).
    """
    spec = get_mode_spec(mode)
    w, h = spec.width, spec.height

    if spec.scan is ScanAlgorithm.TWO_FIELD_INTERLEAVE:
        line = 3 * SCOTTIE_SEPARATOR_MS + 3 * w * SCOTTIE_PIXEL_MS + SCOTTIE_SYNC_MS
        return SCOTTIE_SYNC_MS + h * line
    if spec.scan is ScanAlgorithm.PARITY_INTERLEAVE:
        line = (ROBOT_SYNC_MS + ROBOT_PORCH_MS + w * ROBOT_Y_PIXEL_MS
                + ROBOT_SEPARATOR_MS + ROBOT_CHROMA_PORCH_MS + w * ROBOT_CHROMA_PIXEL_MS)
        return h * line
    if spec.scan is ScanAlgorithm.DUAL_ROW_GROUPED:
        pairs, odd = divmod(h, 2)
        full = PD_SYNC_MS + PD_PORCH_MS + 4 * w * PD_PIXEL_MS
        partial = PD_SYNC_MS + PD_PORCH_MS + 3 * w * PD_PIXEL_MS
        return pairs * full + odd * partial
    line = MARTIN_SYNC_MS + MARTIN_SEPARATOR_MS + 3 * (w * MARTIN_PIXEL_MS + MARTIN_SEPARATOR_MS)
    return h * line


def scan_image(mode: Union[SSTVMode, ModeSpec, str], pixels: np.ndarray,
               synth: ToneSynthesizer) -> int:
    """Run the scan engine for ``mode`` over ``pixels``.

    Args:
        mode: SSTV mode whose scan order to use.
        pixels: (height, width, 3) uint8 image of the mode's exact size.
        synth: Synthesizer receiving the tones.

    Returns:
        Number of samples the scan appended.
    """
    spec = get_mode_spec(mode)
    if pixels.shape != (spec.height, spec.width, 3):
        raise ValueError(
            f"{spec.name} expects a {spec.width}x{spec.height} RGB image, "
            f"got array of shape {pixels.shape}"
        )
    before = len(synth.buffer)
    SCANNERS[spec.scan](pixels, synth)
    emitted = len(synth.buffer) - before
    logger.debug(f"{spec.name} scan emitted {emitted} samples")
    return emitted
