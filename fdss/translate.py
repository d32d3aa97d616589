"""Translate a merged MIDI timeline into FDSS commands.

For each tick, in ascending order, the gap since the previous tick is
spent as a run of WaitTicks commands, then every recognised event at that
tick becomes one command.  Unrecognised events are logged and dropped.

Controller handling is a minimal RPN state machine: CC101/CC100 select a
registered parameter for the current tick only, and CC6/CC38 (data entry)
update the pitch-bend range when RPN 0 is selected.  CC7 and CC10 map
straight to volume and panning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from .commands import (
    WAIT_TICK_LUT,
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
)
from .merge import MidiEvent, Timeline
from .timing import ENGINE_TICK_RATE, TimeDivision, pitch_bend_to_engine, tempo_to_engine

PERCUSSION_CHANNEL = 9
PERCUSSION_BANK_OFFSET = 128

CC_DATA_ENTRY_MSB = 6
CC_VOLUME = 7
CC_PAN = 10
CC_DATA_ENTRY_LSB = 38
CC_RPN_LSB = 100
CC_RPN_MSB = 101

RPN_PITCH_BEND_RANGE = (0, 0)  # (MSB, LSB)


@dataclass(frozen=True)
class TranslationConfig:
    """Knobs for the translator.

    ``percussion_bank_offset`` is added to program changes on
    ``percussion_channel`` so drum kits land in a separate instrument bank.
    Set it to 0 to pass program numbers through unchanged.
    """

    percussion_channel: int = PERCUSSION_CHANNEL
    percussion_bank_offset: int = PERCUSSION_BANK_OFFSET
    pitch_bend_range_coarse: int = 2
    pitch_bend_range_fine: int = 0
    tick_rate: int = ENGINE_TICK_RATE


@dataclass
class TranslatorState:
    prev_tick: int = 0
    pitch_bend_range_coarse: int = 2
    pitch_bend_range_fine: int = 0

    @classmethod
    def from_config(cls, config: TranslationConfig) -> "TranslatorState":
        return cls(
            pitch_bend_range_coarse=config.pitch_bend_range_coarse,
            pitch_bend_range_fine=config.pitch_bend_range_fine,
        )


@dataclass
class RpnSelection:
    """CC101/CC100 values seen so far in the current tick group."""

    msb: Optional[int] = None
    lsb: Optional[int] = None

    def selects(self, parameter: tuple[int, int]) -> bool:
        return (self.msb, self.lsb) == parameter


def wait_lut_indices(gap: int) -> List[int]:
    """Greedy decomposition of ``gap`` ticks into WAIT_TICK_LUT indices.

    Each step takes the largest table entry not exceeding what is left.
    The order matters to the engine, so keep it largest-first.
    """
    if gap < 0:
        raise ValueError(f"negative gap {gap}")

    indices: List[int] = []
    left = gap
    while left > 0:
        for index in range(len(WAIT_TICK_LUT) - 1, -1, -1):
            if WAIT_TICK_LUT[index] <= left:
                left -= WAIT_TICK_LUT[index]
                indices.append(index)
                break
    return indices


def quantize_gap(gap: int) -> List[WaitTicks]:
    return [WaitTicks(lut_index=i) for i in wait_lut_indices(gap)]


def _translate_controller(
    msg: MidiEvent,
    state: TranslatorState,
    rpn: RpnSelection,
    out: List[Command],
) -> None:
    control = msg.control
    value = msg.value

    if control == CC_VOLUME:
        out.append(SetChannelVolume(channel=msg.channel, volume=value))
    elif control == CC_PAN:
        out.append(SetChannelPanning(channel=msg.channel, panning=value * 2))
    elif control == CC_RPN_LSB:
        rpn.lsb = value
    elif control == CC_RPN_MSB:
        rpn.msb = value
    elif control == CC_DATA_ENTRY_MSB:
        if rpn.selects(RPN_PITCH_BEND_RANGE):
            state.pitch_bend_range_coarse = value
            logger.debug("ch{} pitch bend range coarse -> {}", msg.channel, value)
    elif control == CC_DATA_ENTRY_LSB:
        if rpn.selects(RPN_PITCH_BEND_RANGE):
            state.pitch_bend_range_fine = value
            logger.debug("ch{} pitch bend range fine -> {}", msg.channel, value)
    else:
        logger.debug("Unsupported controller {}, value {}", control, value)


def translate_event(
    msg: MidiEvent,
    state: TranslatorState,
    rpn: RpnSelection,
    division: TimeDivision,
    config: TranslationConfig,
    out: List[Command],
) -> None:
    """Append the command(s) for one MIDI event to ``out``."""

    kind = msg.type

    if kind == "note_on":
        out.append(PlayNote(channel=msg.channel, key=msg.note, velocity=msg.velocity))
    elif kind == "note_off":
        out.append(ReleaseNote(channel=msg.channel, key=msg.note))
    elif kind == "program_change":
        index = msg.program
        if msg.channel == config.percussion_channel:
            index += config.percussion_bank_offset
        out.append(SetChannelInstrument(channel=msg.channel, index=index))
    elif kind == "pitchwheel":
        pitch = pitch_bend_to_engine(
            msg.pitch, state.pitch_bend_range_coarse, state.pitch_bend_range_fine
        )
        out.append(SetChannelPitch(channel=msg.channel, pitch=pitch))
    elif kind == "control_change":
        _translate_controller(msg, state, rpn, out)
    elif kind == "set_tempo":
        tempo = tempo_to_engine(msg.tempo, division, tick_rate=config.tick_rate)
        out.append(SetTempo(tempo=tempo))
    elif kind == "time_signature":
        # mido already expands the power-of-two exponent into the denominator.
        out.append(SetTimeSignature(numerator=msg.numerator, denominator=msg.denominator))
    elif msg.is_meta:
        logger.debug("Unsupported meta event {}", msg)
    else:
        logger.debug("Unsupported event {}", msg)


def translate_timeline(
    timeline: Timeline,
    division: TimeDivision,
    *,
    config: Optional[TranslationConfig] = None,
    state: Optional[TranslatorState] = None,
) -> List[Command]:
    """Walk ``timeline`` in tick order and return the FDSS command stream.

    Raises ``UnsupportedTimeDivision`` if a tempo event is found and
    ``division`` is timecode based.
    """
    if config is None:
        config = TranslationConfig()
    if state is None:
        state = TranslatorState.from_config(config)

    commands: List[Command] = []
    for tick in sorted(timeline):
        commands.extend(quantize_gap(tick - state.prev_tick))
        state.prev_tick = tick

        rpn = RpnSelection()
        for msg in timeline[tick]:
            translate_event(msg, state, rpn, division, config, commands)

    return commands
