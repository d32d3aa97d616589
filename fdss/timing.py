"""Time-division model and the numeric conversions used by the translator.

Tempo: the engine stores a tick length as a 12-bit value scaled by
ENGINE_TICK_RATE (49152 units per second).

  us_per_tick  = tempo_us_per_quarter / ticks_per_quarter
  raw          = round(us_per_tick / 1e6 * 49152), clamped to 0..4095

Pitch: bend is stored in tenths of a cent, relative to the channel's
current pitch-bend range (coarse semitones + fine cents).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

ENGINE_TICK_RATE = 49152
TEMPO_MAX = 0x0FFF

PITCH_BEND_MIN = -8192
PITCH_BEND_MAX = 8191
I16_MIN = -0x8000
I16_MAX = 0x7FFF


class UnsupportedTimeDivision(ValueError):
    """Raised when a tempo change cannot be expressed for the file's division."""


def round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class TimeDivision:
    """MIDI header division: metrical (ticks per quarter) or SMPTE timecode."""

    ticks_per_quarter: Optional[int] = None
    frames_per_second: Optional[int] = None
    ticks_per_frame: Optional[int] = None

    @classmethod
    def from_header_word(cls, value: int) -> "TimeDivision":
        """Decode the division word as found in ``MThd``.

        Accepts either the raw unsigned word or the signed value mido reports
        as ``ticks_per_beat`` (negative when the top bit is set).
        """
        word = value & 0xFFFF
        if word & 0x8000:
            fps = 0x100 - (word >> 8)
            return cls(frames_per_second=fps, ticks_per_frame=word & 0xFF)
        return cls(ticks_per_quarter=word)

    @property
    def is_timecode(self) -> bool:
        return self.ticks_per_quarter is None

    def __str__(self) -> str:
        if self.is_timecode:
            return f"timecode {self.frames_per_second} fps x {self.ticks_per_frame}"
        return f"{self.ticks_per_quarter} ticks/quarter"


def tempo_to_engine(
    us_per_quarter: int,
    division: TimeDivision,
    *,
    tick_rate: int = ENGINE_TICK_RATE,
) -> int:
    """Convert a MIDI tempo (microseconds per quarter note) to an engine tempo."""

    if division.is_timecode:
        raise UnsupportedTimeDivision(
            f"tempo change with {division} time division is not supported"
        )
    if not division.ticks_per_quarter:
        raise UnsupportedTimeDivision("time division has 0 ticks per quarter note")

    us_per_tick = us_per_quarter / division.ticks_per_quarter
    seconds_per_tick = us_per_tick / 1_000_000.0
    raw = round_half_away(seconds_per_tick * tick_rate)
    return max(0, min(TEMPO_MAX, raw))


def normalize_pitch_bend(bend: int) -> float:
    """Map a signed 14-bit bend (-8192..8191) onto -1.0..1.0, both ends inclusive."""

    if bend < 0:
        return bend / -PITCH_BEND_MIN
    return bend / PITCH_BEND_MAX


def pitch_bend_to_engine(bend: int, range_coarse: int, range_fine: int) -> int:
    """Return the bend in tenths of a cent, saturated to the i16 range."""

    range_cents = range_coarse * 100 + range_fine
    value = round_half_away(range_cents * 10 * normalize_pitch_bend(bend))
    return max(I16_MIN, min(I16_MAX, value))
