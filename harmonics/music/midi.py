import io
from typing import Optional

import pretty_midi

from .errors import InvalidArgumentError
from .types import InstrumentKey, NoteSet

NOTE_SPACING = 0.25  # seconds
NOTE_DURATION = 0.2
NOTE_VELOCITY = 100
MIDI_FILENAME = "sequence.mid"
TEXT_FILENAME = "sequence.txt"


def note_set_to_midi(note_set: NoteSet, instrument: Optional[InstrumentKey] = None) -> bytes:
    if not len(note_set):
        raise InvalidArgumentError("Nothing to export: the note set is empty.")

    pm = pretty_midi.PrettyMIDI()
    program = instrument.program if instrument is not None else 0
    track = pretty_midi.Instrument(program=program, name=instrument.name if instrument else "")
    for idx, pitch in enumerate(note_set):
        start = idx * NOTE_SPACING
        track.notes.append(
            pretty_midi.Note(velocity=NOTE_VELOCITY, pitch=pitch.midi, start=start, end=start + NOTE_DURATION)
        )
    pm.instruments.append(track)

    buffer = io.BytesIO()
    pm.write(buffer)
    return buffer.getvalue()


def note_set_summary(note_set: NoteSet) -> str:
    numbers = ", ".join(str(midi) for midi in note_set.midi_numbers)
    return f"MIDI note numbers: {numbers}\nNotes: {', '.join(note_set.names)}"
