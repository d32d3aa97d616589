from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .commands import Command, WaitTicks, read_command


MAGIC = b"FDSS"
FIXED_HEADER_SIZE = 0x10  # magic + section count + table offset + data offset
SECTION_ENTRY_SIZE = 4


@dataclass(frozen=True)
class FDSSHeader:
    """File header.

    ``section_table_offset`` and ``section_data_offset`` are relative to the
    end of the fixed header fields; each section offset is relative to the
    start of the section data.  This version always writes exactly one
    section starting at offset 0.
    """

    section_count: int = 1
    section_table_offset: int = 0
    section_data_offset: int = 4
    section_offsets: Tuple[int, ...] = (0,)

    @classmethod
    def from_bytes(cls, data: bytes) -> "FDSSHeader":
        if len(data) < FIXED_HEADER_SIZE:
            raise ValueError(
                f"file too short for header ({len(data)} bytes, need {FIXED_HEADER_SIZE})"
            )
        if data[:4] != MAGIC:
            raise ValueError(f"bad magic: {data[:4].hex()}")

        section_count = int.from_bytes(data[4:8], "little")
        table_offset = int.from_bytes(data[8:12], "little")
        data_offset = int.from_bytes(data[12:16], "little")

        table_start = FIXED_HEADER_SIZE + table_offset
        table_end = table_start + section_count * SECTION_ENTRY_SIZE
        if table_end > len(data):
            raise ValueError(
                f"section table ({section_count} entries at 0x{table_start:X}) "
                f"runs past end of file ({len(data)} bytes)"
            )
        offsets = tuple(
            int.from_bytes(data[off : off + SECTION_ENTRY_SIZE], "little")
            for off in range(table_start, table_end, SECTION_ENTRY_SIZE)
        )
        return cls(
            section_count=section_count,
            section_table_offset=table_offset,
            section_data_offset=data_offset,
            section_offsets=offsets,
        )

    def to_bytes(self) -> bytes:
        parts = [
            MAGIC,
            self.section_count.to_bytes(4, "little", signed=False),
            self.section_table_offset.to_bytes(4, "little", signed=False),
            self.section_data_offset.to_bytes(4, "little", signed=False),
        ]
        parts.extend(off.to_bytes(4, "little", signed=False) for off in self.section_offsets)
        return b"".join(parts)

    @property
    def data_start(self) -> int:
        """Absolute file offset of the section data."""

        return FIXED_HEADER_SIZE + self.section_data_offset

    def section_bounds(self, index: int, file_size: int) -> Tuple[int, int]:
        """Return the absolute ``(start, end)`` byte range of section ``index``."""

        if not 0 <= index < self.section_count:
            raise ValueError(f"section {index} out of range (count={self.section_count})")
        start = self.data_start + self.section_offsets[index]
        if index + 1 < self.section_count:
            end = self.data_start + self.section_offsets[index + 1]
        else:
            end = file_size
        if start > end or end > file_size:
            raise ValueError(f"section {index} bounds 0x{start:X}-0x{end:X} are invalid")
        return start, end


HEADER_SIZE = len(FDSSHeader().to_bytes())


def encode_commands(commands: Iterable[Command]) -> bytes:
    """Serialize a command stream into a complete single-section FDSS file."""

    buf = bytearray(FDSSHeader().to_bytes())
    for command in commands:
        buf.extend(command.to_bytes())
    return bytes(buf)


def decode_commands(data: bytes) -> List[Command]:
    """Decode a bare command stream (no header)."""

    commands: List[Command] = []
    pos = 0
    while pos < len(data):
        command, pos = read_command(data, pos)
        commands.append(command)
    return commands


def sequence_duration_ticks(commands: Iterable[Command]) -> int:
    return sum(c.ticks for c in commands if isinstance(c, WaitTicks))


@dataclass(frozen=True)
class FDSSSequence:
    """A decoded FDSS file: header plus the commands of its first section."""

    header: FDSSHeader = field(default_factory=FDSSHeader)
    commands: List[Command] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> "FDSSSequence":
        header = FDSSHeader.from_bytes(data)
        if header.section_count < 1:
            raise ValueError("file declares no sections")
        start, end = header.section_bounds(0, len(data))
        return cls(header=header, commands=decode_commands(data[start:end]))

    def to_bytes(self) -> bytes:
        parts = [self.header.to_bytes()]
        parts.extend(c.to_bytes() for c in self.commands)
        return b"".join(parts)

    @property
    def duration_ticks(self) -> int:
        return sequence_duration_ticks(self.commands)
