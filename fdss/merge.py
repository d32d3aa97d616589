"""Merge delta-timed MIDI tracks into one absolute-tick timeline."""

from __future__ import annotations

from typing import Dict, Iterable, List, Union

import mido

MidiEvent = Union[mido.Message, mido.MetaMessage]
Timeline = Dict[int, List[MidiEvent]]


def merge_tracks(tracks: Iterable[Iterable[MidiEvent]]) -> Timeline:
    """Return ``{abs_tick: [events...]}`` with keys in ascending order.

    Each track keeps its own running tick counter starting at 0.  Events
    landing on the same tick are kept in track order, then in their
    original order within the track.  Every decoded event is kept, even
    the ones translation will ignore.
    """

    events_by_tick: Timeline = {}
    for track in tracks:
        abs_tick = 0
        for msg in track:
            abs_tick += msg.time
            events_by_tick.setdefault(abs_tick, []).append(msg)

    return {tick: events_by_tick[tick] for tick in sorted(events_by_tick)}
