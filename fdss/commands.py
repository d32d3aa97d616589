"""FDSS sequence commands and their fixed-width byte encoding.

Every command is a small immutable record.  Per-channel commands pack the
MIDI channel (0-15) into the low nibble of the opcode byte:

  0x0c kk        ReleaseNote
  0x1c kk vv     PlayNote
  0x2c vv        SetChannelVolume
  0x3c pp        SetChannelPanning
  0x4c lo hi     SetChannelPitch (i16 LE, tenths of a cent)
  0x5c ii        SetChannelInstrument
  0x8t tt        SetTempo (12-bit value, high nibble in opcode)
  0xA0+i         WaitTicks (i indexes WAIT_TICK_LUT)
  0xFD nn dd     SetTimeSignature
  0xFE           SetLoopStart
  0xFF           JumpToLoopStart
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, Tuple, Union


# Wait durations the playback engine understands, in ticks.  Ascending.
WAIT_TICK_LUT = (
    1,      2,      3,      4,      6,      8,      12,     16,
    20,     24,     28,     32,     40,     48,     56,     64,
    80,     96,     112,    128,    160,    192,    224,    256,
    320,    384,    448,    512,    640,    768,    896,    1024,
)

WAIT_OPCODE_BASE = 0xA0


@dataclass(frozen=True)
class ReleaseNote:
    channel: int
    key: int

    OPCODE: ClassVar[int] = 0x00

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE | (self.channel & 0x0F), self.key & 0xFF])


@dataclass(frozen=True)
class PlayNote:
    channel: int
    key: int
    velocity: int

    OPCODE: ClassVar[int] = 0x10

    def to_bytes(self) -> bytes:
        return bytes([
            self.OPCODE | (self.channel & 0x0F),
            self.key & 0xFF,
            self.velocity & 0xFF,
        ])


@dataclass(frozen=True)
class SetChannelVolume:
    channel: int
    volume: int

    OPCODE: ClassVar[int] = 0x20

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE | (self.channel & 0x0F), self.volume & 0xFF])


@dataclass(frozen=True)
class SetChannelPanning:
    channel: int
    panning: int  # 0-254

    OPCODE: ClassVar[int] = 0x30

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE | (self.channel & 0x0F), self.panning & 0xFF])


@dataclass(frozen=True)
class SetChannelPitch:
    channel: int
    pitch: int  # signed, tenths of a cent

    OPCODE: ClassVar[int] = 0x40

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE | (self.channel & 0x0F)]) + struct.pack("<h", self.pitch)


@dataclass(frozen=True)
class SetChannelInstrument:
    channel: int
    index: int

    OPCODE: ClassVar[int] = 0x50

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE | (self.channel & 0x0F), self.index & 0xFF])


@dataclass(frozen=True)
class SetTempo:
    tempo: int  # 12-bit engine tick length

    OPCODE: ClassVar[int] = 0x80

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE | ((self.tempo >> 8) & 0x0F), self.tempo & 0xFF])


@dataclass(frozen=True)
class WaitTicks:
    lut_index: int

    def to_bytes(self) -> bytes:
        return bytes([WAIT_OPCODE_BASE + self.lut_index])

    @property
    def ticks(self) -> int:
        return WAIT_TICK_LUT[self.lut_index]


@dataclass(frozen=True)
class SetTimeSignature:
    numerator: int
    denominator: int

    OPCODE: ClassVar[int] = 0xFD

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE, self.numerator & 0xFF, self.denominator & 0xFF])


@dataclass(frozen=True)
class SetLoopStart:
    OPCODE: ClassVar[int] = 0xFE

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE])


@dataclass(frozen=True)
class JumpToLoopStart:
    OPCODE: ClassVar[int] = 0xFF

    def to_bytes(self) -> bytes:
        return bytes([self.OPCODE])


Command = Union[
    ReleaseNote,
    PlayNote,
    SetChannelVolume,
    SetChannelPanning,
    SetChannelPitch,
    SetChannelInstrument,
    SetTempo,
    WaitTicks,
    SetTimeSignature,
    SetLoopStart,
    JumpToLoopStart,
]

CHANNEL_COMMANDS = (
    ReleaseNote,
    PlayNote,
    SetChannelVolume,
    SetChannelPanning,
    SetChannelPitch,
    SetChannelInstrument,
)


def _need(data: bytes, pos: int, size: int, opcode: int) -> None:
    if pos + size > len(data):
        raise ValueError(
            f"truncated command 0x{opcode:02X} at offset {pos} "
            f"(need {size} bytes, have {len(data) - pos})"
        )


def read_command(data: bytes, pos: int = 0) -> Tuple[Command, int]:
    """Decode one command starting at ``pos``.

    Returns the command and the offset of the byte following it.
    Raises ``ValueError`` on unknown opcodes or truncated records.
    """
    if pos >= len(data):
        raise ValueError(f"no command at offset {pos}")

    opcode = data[pos]
    group = opcode & 0xF0
    channel = opcode & 0x0F

    if group == ReleaseNote.OPCODE:
        _need(data, pos, 2, opcode)
        return ReleaseNote(channel=channel, key=data[pos + 1]), pos + 2
    if group == PlayNote.OPCODE:
        _need(data, pos, 3, opcode)
        return PlayNote(channel=channel, key=data[pos + 1], velocity=data[pos + 2]), pos + 3
    if group == SetChannelVolume.OPCODE:
        _need(data, pos, 2, opcode)
        return SetChannelVolume(channel=channel, volume=data[pos + 1]), pos + 2
    if group == SetChannelPanning.OPCODE:
        _need(data, pos, 2, opcode)
        return SetChannelPanning(channel=channel, panning=data[pos + 1]), pos + 2
    if group == SetChannelPitch.OPCODE:
        _need(data, pos, 3, opcode)
        pitch = struct.unpack_from("<h", data, pos + 1)[0]
        return SetChannelPitch(channel=channel, pitch=pitch), pos + 3
    if group == SetChannelInstrument.OPCODE:
        _need(data, pos, 2, opcode)
        return SetChannelInstrument(channel=channel, index=data[pos + 1]), pos + 2
    if group == SetTempo.OPCODE:
        _need(data, pos, 2, opcode)
        return SetTempo(tempo=(channel << 8) | data[pos + 1]), pos + 2
    if WAIT_OPCODE_BASE <= opcode < WAIT_OPCODE_BASE + len(WAIT_TICK_LUT):
        return WaitTicks(lut_index=opcode - WAIT_OPCODE_BASE), pos + 1
    if opcode == SetTimeSignature.OPCODE:
        _need(data, pos, 3, opcode)
        return SetTimeSignature(numerator=data[pos + 1], denominator=data[pos + 2]), pos + 3
    if opcode == SetLoopStart.OPCODE:
        return SetLoopStart(), pos + 1
    if opcode == JumpToLoopStart.OPCODE:
        return JumpToLoopStart(), pos + 1

    raise ValueError(f"unknown opcode 0x{opcode:02X} at offset {pos}")
