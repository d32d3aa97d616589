#!/usr/bin/env python3
"""Human-readable FDSS sequence inspector.

Prints the header fields, then one line per command with its byte offset,
the running tick position and a decoded description.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import Iterator, List, Optional, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fdss.commands import (  # noqa: E402
    Command,
    PlayNote,
    ReleaseNote,
    SetChannelInstrument,
    SetChannelPanning,
    SetChannelPitch,
    SetChannelVolume,
    SetTempo,
    SetTimeSignature,
    WaitTicks,
    read_command,
)
from fdss.container import FDSSHeader  # noqa: E402
from fdss.timing import ENGINE_TICK_RATE  # noqa: E402


def describe(command: Command) -> str:
    if isinstance(command, PlayNote):
        return f"ch{command.channel:<2} play     key={command.key} vel={command.velocity}"
    if isinstance(command, ReleaseNote):
        return f"ch{command.channel:<2} release  key={command.key}"
    if isinstance(command, SetChannelVolume):
        return f"ch{command.channel:<2} volume   {command.volume}"
    if isinstance(command, SetChannelPanning):
        return f"ch{command.channel:<2} pan      {command.panning}"
    if isinstance(command, SetChannelPitch):
        return f"ch{command.channel:<2} pitch    {command.pitch / 10:+.1f} cents"
    if isinstance(command, SetChannelInstrument):
        return f"ch{command.channel:<2} program  {command.index}"
    if isinstance(command, SetTempo):
        seconds = command.tempo / ENGINE_TICK_RATE
        return f"tempo {command.tempo} ({seconds * 1000:.3f} ms/tick)"
    if isinstance(command, WaitTicks):
        return f"wait {command.ticks}"
    if isinstance(command, SetTimeSignature):
        return f"time signature {command.numerator}/{command.denominator}"
    return type(command).__name__


def iter_listing(data: bytes, start: int, end: int) -> Iterator[Tuple[int, int, Command]]:
    """Yield ``(offset, tick, command)`` for each command in ``data[start:end]``."""

    body = data[:end]
    pos = start
    tick = 0
    while pos < end:
        command, nxt = read_command(body, pos)
        yield pos, tick, command
        if isinstance(command, WaitTicks):
            tick += command.ticks
        pos = nxt


def render(data: bytes) -> List[str]:
    header = FDSSHeader.from_bytes(data)
    lines = [
        f"magic            : {data[:4].decode('ascii')}",
        f"sections         : {header.section_count}",
        f"section table    : +0x{header.section_table_offset:X}",
        f"section data     : +0x{header.section_data_offset:X}",
        f"section offsets  : {', '.join(f'0x{o:X}' for o in header.section_offsets)}",
    ]
    for index in range(header.section_count):
        start, end = header.section_bounds(index, len(data))
        lines.append("")
        lines.append(f"section {index}: 0x{start:04X}-0x{end:04X}")
        for offset, tick, command in iter_listing(data, start, end):
            raw = data[offset : offset + len(command.to_bytes())]
            lines.append(f"  0x{offset:04X}  t={tick:<7} {raw.hex(' '):<9} {describe(command)}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect an FDSS sequence file")
    parser.add_argument("path", help="FDSS file (.dss)")
    args = parser.parse_args(argv)

    try:
        lines = render(Path(args.path).read_bytes())
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print("\n".join(lines))
    return 0


if __name__ == "__main__":
    sys.exit(main())
