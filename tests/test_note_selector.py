import random
from typing import List

import pytest

from harmonics.music.errors import InvalidArgumentError, PitchRangeError
from harmonics.music.note_selector import (
    derive_harmonics,
    generate_note_set,
    select_notes,
    shuffle_notes,
)
from harmonics.music.theory import ScaleSelection
from harmonics.music.types import Pitch


class ScriptedRandom:
    """Returns pre-recorded draws so selection is predictable."""

    def __init__(self, draws: List[int]) -> None:
        self._draws = list(draws)
        self.stops: List[int] = []

    def randrange(self, stop: int) -> int:
        self.stops.append(stop)
        value = self._draws.pop(0)
        assert 0 <= value < stop
        return value


def c_major() -> ScaleSelection:
    return ScaleSelection.from_names("C", "Major", 0)


def test_c_major_scenario() -> None:
    # scale indices 0, 2, 4 are pool positions 0, 1, 2 once C and E are removed
    rng = ScriptedRandom([0, 1, 2])
    note_set = generate_note_set(c_major(), 3, rng)

    assert [p.midi for p in c_major().degrees()] == [60, 62, 64, 65, 67, 69, 71]
    assert [p.name for p in note_set.selected] == ["C4", "E4", "G4"]
    assert [p.name for p in note_set.harmonics] == ["G4", "B4", "D5"] * 3
    assert note_set.midi_numbers == [60, 64, 67] + [67, 71, 74] * 3
    assert len(note_set) == 12
    assert rng.stops == [7, 6, 5]


def test_select_notes_never_repeats() -> None:
    degrees = c_major().degrees()
    rng = random.Random(1234)
    for count in range(1, 8):
        selected = select_notes(degrees, count, rng)
        assert len(selected) == count
        assert len(set(selected)) == count
        assert set(selected) <= set(degrees)


def test_select_all_seven_is_a_permutation() -> None:
    degrees = c_major().degrees()
    selected = select_notes(degrees, 7, random.Random(7))
    assert sorted(selected) == sorted(degrees)


def test_select_notes_rejects_bad_counts() -> None:
    degrees = c_major().degrees()
    with pytest.raises(InvalidArgumentError):
        select_notes(degrees, 0, random.Random())
    with pytest.raises(InvalidArgumentError):
        select_notes(degrees, 8, random.Random())


def test_same_seed_same_note_set() -> None:
    first = generate_note_set(c_major(), 4, random.Random(99))
    second = generate_note_set(c_major(), 4, random.Random(99))
    assert first == second


def test_derive_harmonics_cycles_the_selection() -> None:
    selected = [Pitch(62), Pitch(65)]
    harmonics = derive_harmonics(selected, 5)
    assert len(harmonics) == 5
    for idx, pitch in enumerate(harmonics):
        assert pitch.midi == selected[idx % len(selected)].midi + 7
    assert derive_harmonics(selected, 0) == []


def test_derive_harmonics_needs_a_seed() -> None:
    with pytest.raises(InvalidArgumentError):
        derive_harmonics([], 3)


def test_derive_harmonics_rejects_overflow() -> None:
    with pytest.raises(PitchRangeError):
        derive_harmonics([Pitch(125)], 1)


@pytest.mark.parametrize("count", [1, 2, 3, 4, 5])
def test_note_set_always_has_twelve_notes(count: int) -> None:
    note_set = generate_note_set(c_major(), count, random.Random(count))
    assert len(note_set.selected) == count
    assert len(note_set.harmonics) == 12 - count
    assert len(note_set) == 12


@pytest.mark.parametrize("count", [0, 6])
def test_note_count_is_limited_to_five(count: int) -> None:
    with pytest.raises(InvalidArgumentError):
        generate_note_set(c_major(), count, random.Random())


def test_shuffle_keeps_every_note() -> None:
    pitches = [Pitch(n) for n in (60, 64, 67, 67, 71)]
    shuffled = shuffle_notes(pitches, random.Random(5))
    assert sorted(shuffled) == sorted(pitches)
