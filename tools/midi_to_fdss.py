#!/usr/bin/env python3
"""Convert a standard MIDI file into an FDSS sequence.

Examples
--------
    python tools/midi_to_fdss.py song.mid
    python tools/midi_to_fdss.py song.mid out/song.dss --verbose

Exit codes: 1 usage, 2 input unreadable, 3 invalid/unsupported MIDI,
4 output not writable.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from loguru import logger  # noqa: E402

from fdss.container import encode_commands, sequence_duration_ticks  # noqa: E402
from fdss.convert import default_output_path, load_midi, midi_to_commands  # noqa: E402
from fdss.translate import TranslationConfig  # noqa: E402

EXIT_USAGE = 1
EXIT_INPUT = 2
EXIT_CONVERT = 3
EXIT_OUTPUT = 4


class _UsageParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.enable("fdss")
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def main(argv: Optional[List[str]] = None) -> int:
    parser = _UsageParser(
        prog="midi2psx",
        description="Convert a MIDI file (.mid) to an FDSS sequence (.dss)",
    )
    parser.add_argument("input", help="Input MIDI file (.mid)")
    parser.add_argument(
        "output",
        nargs="?",
        default=None,
        help="Output path (default: input with .dss extension)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log skipped events")
    parser.add_argument(
        "--no-percussion-bank",
        action="store_true",
        help="Do not add 128 to program changes on the percussion channel",
    )
    args = parser.parse_args(argv)

    if not args.input.endswith(".mid"):
        parser.error(f"input must be a .mid file: {args.input}")

    _configure_logging(args.verbose)

    if args.no_percussion_bank:
        config = TranslationConfig(percussion_bank_offset=0)
    else:
        config = TranslationConfig()
    output_path = Path(args.output) if args.output else default_output_path(args.input)

    try:
        data = Path(args.input).read_bytes()
    except OSError as exc:
        logger.error("Failed to open file {}: {}", args.input, exc)
        return EXIT_INPUT

    try:
        mid = load_midi(data)
        commands = midi_to_commands(mid, config=config)
    except ValueError as exc:
        logger.error("Cannot convert {}: {}", args.input, exc)
        return EXIT_CONVERT

    out = encode_commands(commands)
    try:
        output_path.write_bytes(out)
    except OSError as exc:
        logger.error("Error writing to file: {}", exc)
        return EXIT_OUTPUT

    logger.debug("Data successfully written to file.")
    print(
        f"Wrote {len(out)} bytes -> {output_path} "
        f"({len(commands)} commands, {sequence_duration_ticks(commands)} ticks)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
