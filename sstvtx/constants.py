"""SSTV transmit constants.

Tone frequencies, VIS header timing, color-to-frequency mapping and the
audio parameter bounds shared by the synthesizer and its collaborators.
"""

from __future__ import annotations

VERSION = '0.1.0'

# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------
DEFAULT_SAMPLE_RATE = 6000  # Hz - highest SSTV tone is 2300 Hz
MIN_SAMPLE_RATE = 1000
MAX_SAMPLE_RATE = 192000

DEFAULT_BIT_DEPTH = 16
SUPPORTED_BIT_DEPTHS = (16, 32)

# Full-scale amplitude of a signed 16-bit sample
SAMPLE_AMPLITUDE = 32767

WAV_HEADER_BYTES = 44

# ---------------------------------------------------------------------------
# SSTV tone frequencies (Hz)
# ---------------------------------------------------------------------------
FREQ_SILENCE = 0.0
FREQ_VIS_BIT_1 = 1100.0     # VIS logic 1
FREQ_SYNC = 1200.0          # Horizontal sync pulse
FREQ_VIS_BIT_0 = 1300.0     # VIS logic 0
FREQ_BREAK = 1200.0         # Break tone in VIS header (same as sync)
FREQ_BLACK = 1500.0         # Black level / separator
FREQ_LEADER = 1900.0        # Leader / calibration tone
FREQ_WHITE = 2300.0         # White level

# Pixel value (0-255) -> Hz multiplier; 255 * 3.1372549 ~= 800 Hz span
COLOR_FREQ_MULT = 3.1372549

# ---------------------------------------------------------------------------
# Transmission framing (milliseconds)
# ---------------------------------------------------------------------------
SILENCE_MS = 200.0

VIS_BIT_MS = 30.0
VIS_CODE_BITS = 7

# Calibration header, then leader/break/leader/start bit
VIS_PREAMBLE: tuple[tuple[float, float], ...] = (
    (FREQ_LEADER, 100.0), (FREQ_BLACK, 100.0), (FREQ_LEADER, 100.0), (FREQ_BLACK, 100.0),
    (FREQ_WHITE, 100.0), (FREQ_BLACK, 100.0), (FREQ_WHITE, 100.0), (FREQ_BLACK, 100.0),
    (FREQ_LEADER, 300.0), (FREQ_BREAK, 10.0), (FREQ_LEADER, 300.0), (FREQ_SYNC, 30.0),
)

END_TONES: tuple[tuple[float, float], ...] = (
    (FREQ_BLACK, 500.0),
    (FREQ_LEADER, 100.0),
    (FREQ_BLACK, 100.0),
    (FREQ_LEADER, 100.0),
    (FREQ_BLACK, 100.0),
)

# ---------------------------------------------------------------------------
# Image fitting
# ---------------------------------------------------------------------------
# Warn when the source has more than this many times the target pixels
OVERSIZE_SOURCE_FACTOR = 16

TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'

# ---------------------------------------------------------------------------
# Memory bookkeeping
# ---------------------------------------------------------------------------
BYTES_PER_SAMPLE = 2
BYTES_PER_PIXEL = 3
METADATA_OVERHEAD_BYTES = 128
ESTIMATE_OVERHEAD_BYTES = 1024
# Assumed available memory for check_memory_requirements (MB)
ASSUMED_AVAILABLE_MB = 100.0
