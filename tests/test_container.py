from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fdss.commands import PlayNote, ReleaseNote, SetTempo, WaitTicks  # noqa: E402
from fdss.container import (  # noqa: E402
    HEADER_SIZE,
    FDSSHeader,
    FDSSSequence,
    encode_commands,
    sequence_duration_ticks,
)

EXPECTED_HEADER = bytes.fromhex(
    "46 44 53 53"  # "FDSS"
    "01 00 00 00"  # section count
    "00 00 00 00"  # section table offset
    "04 00 00 00"  # section data offset
    "00 00 00 00"  # section 0 start
)

COMMANDS = [
    SetTempo(tempo=512),
    PlayNote(channel=0, key=60, velocity=100),
    WaitTicks(lut_index=5),
    WaitTicks(lut_index=1),
    ReleaseNote(channel=0, key=60),
]


def test_default_header_bytes() -> None:
    assert FDSSHeader().to_bytes() == EXPECTED_HEADER
    assert HEADER_SIZE == len(EXPECTED_HEADER) == 20


def test_empty_sequence_is_header_only() -> None:
    assert encode_commands([]) == EXPECTED_HEADER


def test_encode_appends_commands_in_order() -> None:
    data = encode_commands(COMMANDS)
    assert data[:HEADER_SIZE] == EXPECTED_HEADER
    assert data[HEADER_SIZE:] == bytes.fromhex("82 00 10 3C 64 A5 A1 00 3C")


def test_header_parse_and_data_start() -> None:
    header = FDSSHeader.from_bytes(EXPECTED_HEADER)
    assert header == FDSSHeader()
    assert header.data_start == HEADER_SIZE
    assert header.section_bounds(0, 40) == (HEADER_SIZE, 40)


def test_sequence_decode() -> None:
    seq = FDSSSequence.from_bytes(encode_commands(COMMANDS))
    assert seq.header == FDSSHeader()
    assert seq.commands == COMMANDS
    assert seq.duration_ticks == 10
    assert seq.to_bytes() == encode_commands(COMMANDS)


def test_multi_section_bounds() -> None:
    header = FDSSHeader(
        section_count=2,
        section_table_offset=0,
        section_data_offset=8,
        section_offsets=(0, 3),
    )
    raw = header.to_bytes() + bytes.fromhex("10 3C 64 00 3C")
    parsed = FDSSHeader.from_bytes(raw)
    assert parsed.section_offsets == (0, 3)
    assert parsed.section_bounds(0, len(raw)) == (24, 27)
    assert parsed.section_bounds(1, len(raw)) == (27, 29)
    with pytest.raises(ValueError):
        parsed.section_bounds(2, len(raw))


def test_duration_ignores_non_wait_commands() -> None:
    assert sequence_duration_ticks(COMMANDS) == 10
    assert sequence_duration_ticks([]) == 0


@pytest.mark.parametrize(
    "data, message",
    [
        (b"FDSS\x01\x00", "too short"),
        (b"MThd" + bytes(16), "bad magic"),
        (b"FDSS" + (5).to_bytes(4, "little") + bytes(8), "section table"),
    ],
)
def test_header_errors(data: bytes, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        FDSSHeader.from_bytes(data)


def test_sequence_without_sections_raises() -> None:
    with pytest.raises(ValueError, match="no sections"):
        FDSSSequence.from_bytes(b"FDSS" + bytes(12))
