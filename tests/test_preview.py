import random

import pytest
from pydub import AudioSegment

from harmonics.music.errors import InvalidArgumentError
from harmonics.music.instruments import SynthVoice
from harmonics.music.preview import (
    LogicalClock,
    melody_schedule,
    preview_schedule,
    render_schedule,
    schedule_sequence,
)
from harmonics.music.types import InstrumentFamily, NoteSet, Pitch

RATE = 8000


def sample_set() -> NoteSet:
    return NoteSet(tuple(Pitch(n) for n in (60, 62, 64)), tuple(Pitch(n) for n in (67, 69, 71)))


def test_clock_only_moves_forward() -> None:
    clock = LogicalClock()
    assert clock.advance(0.25) == 0.25
    assert clock.advance(0.25) == 0.5
    with pytest.raises(InvalidArgumentError):
        clock.advance(-0.1)


def test_preview_follows_note_order() -> None:
    schedule = preview_schedule(sample_set())
    assert [note.pitch.midi for note in schedule] == [60, 62, 64, 67, 69, 71]
    assert [note.start for note in schedule] == pytest.approx([0.0, 0.25, 0.5, 0.75, 1.0, 1.25])
    assert all(note.duration == 0.25 for note in schedule)


def test_melody_is_a_shuffle_with_wider_spacing() -> None:
    schedule = melody_schedule(sample_set(), random.Random(3))
    assert sorted(note.pitch.midi for note in schedule) == [60, 62, 64, 67, 69, 71]
    assert schedule[1].start == pytest.approx(0.4)


def test_notes_never_overlap() -> None:
    schedule = schedule_sequence(sample_set(), spacing=0.2, duration=0.5)
    for current, following in zip(schedule, schedule[1:]):
        assert current.start + current.duration <= following.start + 1e-9


def test_render_schedule_produces_a_wav() -> None:
    buffer = render_schedule(preview_schedule(sample_set()), SynthVoice(InstrumentFamily.SYNTH), RATE)
    segment = AudioSegment.from_wav(buffer)
    assert segment.frame_rate == RATE
    assert segment.channels == 1
    # six notes a quarter second apart plus the tail
    assert abs(len(segment) - 2000) <= 2
    assert segment.max_dBFS == pytest.approx(-1.5, abs=0.2)


def test_render_schedule_needs_notes() -> None:
    with pytest.raises(InvalidArgumentError):
        render_schedule([], SynthVoice(InstrumentFamily.SYNTH), RATE)
