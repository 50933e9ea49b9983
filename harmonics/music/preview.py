import io
import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from pydub import AudioSegment

from .errors import InvalidArgumentError
from .instruments import Voice
from .note_selector import RandomSource, shuffle_notes
from .synthesis import DEFAULT_SAMPLE_RATE
from .types import NoteSet, Pitch

PREVIEW_SPACING = 0.25  # an eighth note at 120 bpm
MELODY_SPACING = 0.4
TAIL_SECONDS = 0.5
PEAK_DBFS = -1.5


@dataclass(frozen=True)
class ScheduledNote:
    start: float  # seconds
    duration: float  # seconds
    pitch: Pitch


class LogicalClock:
    """Time cursor for laying out notes; advancing it never sleeps."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise InvalidArgumentError("the clock only moves forward")
        self.now += seconds
        return self.now


def schedule_sequence(pitches: Iterable[Pitch], spacing: float, duration: float) -> List[ScheduledNote]:
    if spacing <= 0 or duration <= 0:
        raise InvalidArgumentError("spacing and duration must be positive")
    # one voice only: a note must end before the next one starts
    duration = min(duration, spacing)
    clock = LogicalClock()
    schedule: List[ScheduledNote] = []
    for pitch in pitches:
        schedule.append(ScheduledNote(start=clock.now, duration=duration, pitch=pitch))
        clock.advance(spacing)
    return schedule


def preview_schedule(note_set: NoteSet) -> List[ScheduledNote]:
    return schedule_sequence(note_set, PREVIEW_SPACING, PREVIEW_SPACING)


def melody_schedule(note_set: NoteSet, rng: RandomSource) -> List[ScheduledNote]:
    return schedule_sequence(shuffle_notes(note_set.pitches, rng), MELODY_SPACING, MELODY_SPACING)


def render_schedule(
    schedule: Sequence[ScheduledNote],
    voice: Voice,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> io.BytesIO:
    if not schedule:
        raise InvalidArgumentError("No notes to render.")

    total = max(note.start + note.duration for note in schedule) + TAIL_SECONDS
    output = AudioSegment.silent(duration=int(math.ceil(total * 1000)), frame_rate=sample_rate)

    for note in schedule:
        segment = voice.render(note.pitch, note.duration, sample_rate)
        output = output.overlay(segment, position=int(round(note.start * 1000)))

    peak_level = output.max_dBFS
    if math.isfinite(peak_level) and peak_level < PEAK_DBFS:
        output = output.apply_gain(PEAK_DBFS - peak_level)

    buffer = io.BytesIO()
    output.export(buffer, format="wav")
    buffer.seek(0)
    return buffer
