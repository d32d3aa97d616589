"""MIDI → FDSS conversion pipeline: decode, merge, translate, encode."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import mido
from loguru import logger
from mido.midifiles.meta import KeySignatureError

from .commands import Command
from .container import encode_commands, sequence_duration_ticks
from .merge import merge_tracks
from .timing import TimeDivision
from .translate import TranslationConfig, translate_timeline

OUTPUT_SUFFIX = ".dss"


class MidiDecodeError(ValueError):
    """The input bytes are not a MIDI file mido can decode."""


@dataclass(frozen=True)
class ConversionSummary:
    input_path: Path
    output_path: Path
    track_count: int
    division: TimeDivision
    command_count: int
    duration_ticks: int
    output_size: int


def load_midi(data: bytes) -> mido.MidiFile:
    try:
        return mido.MidiFile(file=io.BytesIO(data))
    except (OSError, EOFError, ValueError, KeyError, KeySignatureError) as exc:
        raise MidiDecodeError(f"invalid MIDI data: {exc}") from exc


def midi_to_commands(
    mid: mido.MidiFile, *, config: Optional[TranslationConfig] = None
) -> List[Command]:
    division = TimeDivision.from_header_word(mid.ticks_per_beat)
    timeline = merge_tracks(mid.tracks)
    logger.debug(
        "Merged {} track(s) into {} tick group(s), division {}",
        len(mid.tracks),
        len(timeline),
        division,
    )
    return translate_timeline(timeline, division, config=config)


def convert_midi_bytes(data: bytes, *, config: Optional[TranslationConfig] = None) -> bytes:
    """Convert a standard MIDI file image to an FDSS file image."""

    return encode_commands(midi_to_commands(load_midi(data), config=config))


def default_output_path(input_path: Union[str, Path]) -> Path:
    return Path(input_path).with_suffix(OUTPUT_SUFFIX)


def convert_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path, None] = None,
    *,
    config: Optional[TranslationConfig] = None,
) -> ConversionSummary:
    """Read ``input_path``, convert it and write the FDSS file.

    I/O errors propagate as ``OSError``; bad MIDI raises ``MidiDecodeError``.
    """
    src = Path(input_path)
    dst = Path(output_path) if output_path is not None else default_output_path(src)

    mid = load_midi(src.read_bytes())
    commands = midi_to_commands(mid, config=config)
    data = encode_commands(commands)
    dst.write_bytes(data)

    summary = ConversionSummary(
        input_path=src,
        output_path=dst,
        track_count=len(mid.tracks),
        division=TimeDivision.from_header_word(mid.ticks_per_beat),
        command_count=len(commands),
        duration_ticks=sequence_duration_ticks(commands),
        output_size=len(data),
    )
    logger.info(
        "Converted {} -> {}: {} commands, {} ticks, {} bytes",
        src.name,
        dst.name,
        summary.command_count,
        summary.duration_ticks,
        summary.output_size,
    )
    return summary
