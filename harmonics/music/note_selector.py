import logging
from typing import List, Protocol, Sequence

from .errors import InvalidArgumentError
from .theory import ScaleSelection
from .types import MAX_NOTES, NoteSet, Pitch

MAX_SELECTED = 5
HARMONIC_INTERVAL = 7  # perfect fifth

_LOG = logging.getLogger("harmonics.selector")


class RandomSource(Protocol):
    """Anything with ``random.Random.randrange`` semantics for a single stop value."""

    def randrange(self, stop: int) -> int:
        ...


def _draw(pool: Sequence[Pitch], count: int, rng: RandomSource) -> List[Pitch]:
    remaining = list(pool)
    drawn: List[Pitch] = []
    while len(drawn) < count and remaining:
        idx = rng.randrange(len(remaining))
        drawn.append(remaining.pop(idx))
    return drawn


def select_notes(scale_pitches: Sequence[Pitch], count: int, rng: RandomSource) -> List[Pitch]:
    """Draw ``count`` pitches without replacement, each remaining one equally likely."""
    if not 1 <= count <= len(scale_pitches):
        raise InvalidArgumentError(f"count must be in 1..{len(scale_pitches)}, got {count}")
    if len(set(scale_pitches)) != len(scale_pitches):
        raise InvalidArgumentError("scale pitches must be distinct")
    return _draw(scale_pitches, count, rng)


def derive_harmonics(selected: Sequence[Pitch], need: int) -> List[Pitch]:
    """A fifth above each selected pitch, cycling through ``selected`` until ``need`` are made."""
    if need < 0:
        raise InvalidArgumentError(f"need must not be negative, got {need}")
    if need and not selected:
        raise InvalidArgumentError("harmonics need at least one selected pitch")
    return [selected[i % len(selected)].transpose(HARMONIC_INTERVAL) for i in range(need)]


def shuffle_notes(pitches: Sequence[Pitch], rng: RandomSource) -> List[Pitch]:
    """Uniform random permutation, drawn the same way as ``select_notes``."""
    return _draw(pitches, len(pitches), rng)


def generate_note_set(selection: ScaleSelection, count: int, rng: RandomSource) -> NoteSet:
    if not 1 <= count <= MAX_SELECTED:
        raise InvalidArgumentError(f"Number of notes must be in 1..{MAX_SELECTED}, got {count}")
    selected = select_notes(selection.degrees(), count, rng)
    harmonics = derive_harmonics(selected, MAX_NOTES - count)
    note_set = NoteSet(tuple(selected), tuple(harmonics[: MAX_NOTES - len(selected)]))
    _LOG.debug("Generated %s from %s", ", ".join(note_set.names), selection.describe())
    return note_set
