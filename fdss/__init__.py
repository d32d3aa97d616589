"""MIDI to FDSS sequence transcoding."""

from loguru import logger

from .commands import (  # noqa: F401
    CHANNEL_COMMANDS,
    WAIT_TICK_LUT,
    Command,
    JumpToLoopStart,
    PlayNote,
    ReleaseNote,
    SetChannelInstrument,
    SetChannelPanning,
    SetChannelPitch,
    SetChannelVolume,
    SetLoopStart,
    SetTempo,
    SetTimeSignature,
    WaitTicks,
    read_command,
)
from .container import (  # noqa: F401
    HEADER_SIZE,
    MAGIC,
    FDSSHeader,
    FDSSSequence,
    decode_commands,
    encode_commands,
    sequence_duration_ticks,
)
from .convert import (  # noqa: F401
    ConversionSummary,
    MidiDecodeError,
    convert_file,
    convert_midi_bytes,
    default_output_path,
    load_midi,
    midi_to_commands,
)
from .merge import Timeline, merge_tracks  # noqa: F401
from .timing import (  # noqa: F401
    ENGINE_TICK_RATE,
    TimeDivision,
    UnsupportedTimeDivision,
    pitch_bend_to_engine,
    tempo_to_engine,
)
from .translate import (  # noqa: F401
    TranslationConfig,
    TranslatorState,
    quantize_gap,
    translate_timeline,
    wait_lut_indices,
)

# Silent unless an application opts in with logger.enable("fdss").
logger.disable("fdss")
