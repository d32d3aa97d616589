"""End-to-end MIDI → FDSS conversion."""

from __future__ import annotations

import io
from pathlib import Path
import sys

import mido
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fdss.commands import PlayNote, ReleaseNote, SetTempo, WaitTicks  # noqa: E402
from fdss.container import FDSSSequence  # noqa: E402
from fdss.convert import (  # noqa: E402
    MidiDecodeError,
    convert_file,
    convert_midi_bytes,
    default_output_path,
    load_midi,
    midi_to_commands,
)
from fdss.timing import UnsupportedTimeDivision  # noqa: E402

HEADER = bytes.fromhex("46 44 53 53 01 00 00 00 00 00 00 00 04 00 00 00 00 00 00 00")

# MThd with SMPTE division 0xE728 (25 fps, 40 ticks/frame) and one tempo event.
SMPTE_TEMPO_MIDI = (
    b"MThd" + bytes.fromhex("00000006 0000 0001 E728")
    + b"MTrk" + bytes.fromhex("0000000B")
    + bytes.fromhex("00 FF 51 03 07 A1 20  00 FF 2F 00")
)

# Key signature meta event with mode byte 5 (only 0 and 1 are defined).
BAD_KEY_SIGNATURE_MIDI = (
    b"MThd" + bytes.fromhex("00000006 0000 0001 0030")
    + b"MTrk" + bytes.fromhex("0000000A")
    + bytes.fromhex("00 FF 59 02 00 05  00 FF 2F 00")
)


def _two_track_midi() -> mido.MidiFile:
    """Tempo track plus one note track: C4 held for 10 ticks at 48 ppq."""
    mid = mido.MidiFile(ticks_per_beat=48)
    tempo_track = mido.MidiTrack()
    tempo_track.append(mido.MetaMessage("set_tempo", tempo=500_000, time=0))
    mid.tracks.append(tempo_track)

    notes = mido.MidiTrack()
    notes.append(mido.Message("note_on", channel=0, note=60, velocity=100, time=0))
    notes.append(mido.Message("note_off", channel=0, note=60, velocity=0, time=10))
    mid.tracks.append(notes)
    return mid


def _to_bytes(mid: mido.MidiFile) -> bytes:
    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()


def test_two_track_scenario_commands() -> None:
    commands = midi_to_commands(_two_track_midi())
    assert commands == [
        SetTempo(tempo=512),
        PlayNote(channel=0, key=60, velocity=100),
        WaitTicks(lut_index=5),
        WaitTicks(lut_index=1),
        ReleaseNote(channel=0, key=60),
    ]


def test_two_track_scenario_bytes() -> None:
    data = convert_midi_bytes(_to_bytes(_two_track_midi()))
    assert data[:20] == HEADER
    assert data[20:] == bytes.fromhex("82 00 10 3C 64 A5 A1 00 3C")


def test_output_decodes_back() -> None:
    data = convert_midi_bytes(_to_bytes(_two_track_midi()))
    seq = FDSSSequence.from_bytes(data)
    assert seq.duration_ticks == 10
    assert seq.commands[0] == SetTempo(tempo=512)


def test_conversion_is_deterministic() -> None:
    raw = _to_bytes(_two_track_midi())
    assert convert_midi_bytes(raw) == convert_midi_bytes(raw)


@pytest.mark.parametrize("data", [b"", b"not a midi file", b"MThd\x00\x00"])
def test_invalid_midi_raises(data: bytes) -> None:
    with pytest.raises(MidiDecodeError):
        load_midi(data)


def test_smpte_division_with_tempo_is_fatal() -> None:
    with pytest.raises(UnsupportedTimeDivision):
        convert_midi_bytes(SMPTE_TEMPO_MIDI)


def test_default_output_path() -> None:
    assert default_output_path("songs/theme.mid") == Path("songs/theme.dss")


def test_convert_file(tmp_path: Path) -> None:
    src = tmp_path / "theme.mid"
    src.write_bytes(_to_bytes(_two_track_midi()))

    summary = convert_file(src)

    out = tmp_path / "theme.dss"
    assert summary.output_path == out
    assert out.read_bytes()[:20] == HEADER
    assert summary.track_count == 2
    assert summary.command_count == 5
    assert summary.duration_ticks == 10
    assert summary.output_size == 29


def test_convert_file_explicit_output(tmp_path: Path) -> None:
    src = tmp_path / "theme.mid"
    src.write_bytes(_to_bytes(_two_track_midi()))
    dst = tmp_path / "out" / "x.dss"
    dst.parent.mkdir()

    convert_file(src, dst)
    assert dst.exists()
    assert not (tmp_path / "theme.dss").exists()


def test_convert_missing_file_raises_oserror(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        convert_file(tmp_path / "missing.mid")


def test_bad_key_signature_is_a_decode_error() -> None:
    with pytest.raises(MidiDecodeError, match="invalid MIDI data"):
        convert_midi_bytes(BAD_KEY_SIGNATURE_MIDI)
