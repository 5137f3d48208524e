"""SSTV mode specifications.

The encoder supports a closed set of four modes. Each mode carries fixed
protocol constants (resolution, nominal duration, VIS code) and names the
scan algorithm that walks the image for it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from .errors import UnsupportedModeError


class SSTVMode(enum.Enum):
    """Supported transmit modes."""
    SCOTTIE_DX = 'ScottieDX'
    ROBOT_36 = 'Robot36'
    PD_120 = 'PD120'
    MARTIN_M1 = 'MartinM1'

    def __str__(self) -> str:
        return self.value


class ScanAlgorithm(enum.Enum):
    """Scan ordering used to turn rows into tones."""
    TWO_FIELD_INTERLEAVE = 'two_field'      # G, B, sync mid-line, R
    PARITY_INTERLEAVE = 'parity'            # Y + alternating R-Y / B-Y
    DUAL_ROW_GROUPED = 'dual_row'           # Y1, R-Y, B-Y, Y2 per row pair
    SINGLE_ROW_GROUPED = 'single_row'       # sync, then G, B, R


@dataclass(frozen=True)
class ModeSpec:
    """Complete specification of an SSTV transmit mode.

    Attributes:
        mode: Enum member this spec belongs to.
        name: Short mode name (e.g. 'Robot36').
        display_name: Human-readable name (e.g. 'Robot-36').
        vis_code: 7-bit VIS identifier as a '0'/'1' string.
        width: Image width in pixels.
        height: Image height in lines.
        duration_s: Nominal transmission time in seconds.
        scan: Scan algorithm for this mode.
    """
    mode: SSTVMode
    name: str
    display_name: str
    vis_code: str
    width: int
    height: int
    duration_s: float
    scan: ScanAlgorithm

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


SCOTTIE_DX = ModeSpec(
    mode=SSTVMode.SCOTTIE_DX,
    name='ScottieDX',
    display_name='Scottie-DX',
    vis_code='1001100',
    width=320,
    height=256,
    duration_s=269.6,
    scan=ScanAlgorithm.TWO_FIELD_INTERLEAVE,
)

ROBOT_36 = ModeSpec(
    mode=SSTVMode.ROBOT_36,
    name='Robot36',
    display_name='Robot-36',
    vis_code='0001000',
    width=320,
    height=240,
    duration_s=36.0,
    scan=ScanAlgorithm.PARITY_INTERLEAVE,
)

PD_120 = ModeSpec(
    mode=SSTVMode.PD_120,
    name='PD120',
    display_name='PD-120',
    vis_code='1011111',
    width=640,
    height=496,
    duration_s=120.0,
    scan=ScanAlgorithm.DUAL_ROW_GROUPED,
)

MARTIN_M1 = ModeSpec(
    mode=SSTVMode.MARTIN_M1,
    name='MartinM1',
    display_name='Martin-M1',
    vis_code='0101100',
    width=320,
    height=256,
    duration_s=114.7,
    scan=ScanAlgorithm.SINGLE_ROW_GROUPED,
)


# ---------------------------------------------------------------------------
# Mode registry
# ---------------------------------------------------------------------------

ALL_MODES: dict[SSTVMode, ModeSpec] = {
    m.mode: m for m in [SCOTTIE_DX, ROBOT_36, PD_120, MARTIN_M1]
}


def normalize_mode_name(name: str) -> str:
    """Reduce a mode name to lowercase alphanumerics ('Robot-36' -> 'robot36')."""
    return ''.join(c for c in name.lower() if c.isalnum())


MODE_BY_NAME: dict[str, ModeSpec] = {}
for _spec in ALL_MODES.values():
    MODE_BY_NAME[normalize_mode_name(_spec.name)] = _spec
    MODE_BY_NAME[normalize_mode_name(_spec.mode.name)] = _spec
# Common alias without the "M" suffix
MODE_BY_NAME['martin1'] = MARTIN_M1


def get_mode_spec(mode: Union[SSTVMode, ModeSpec, str]) -> ModeSpec:
    """Resolve an enum member, spec or name to its ModeSpec.

    Raises:
        UnsupportedModeError: If a name does not match any supported mode.
    """
    if isinstance(mode, ModeSpec):
        return mode
    if isinstance(mode, SSTVMode):
        return ALL_MODES[mode]
    if isinstance(mode, str):
        spec = MODE_BY_NAME.get(normalize_mode_name(mode))
        if spec is None:
            raise UnsupportedModeError(mode)
        return spec
    raise UnsupportedModeError(str(mode))
