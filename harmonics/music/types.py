from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Tuple

import numpy as np

from .errors import InvalidArgumentError, PitchRangeError

MIDI_MIN = 0
MIDI_MAX = 127
MAX_NOTES = 12

SHARP_NAMES: Tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
_LETTER_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def _spelling_offset(name: str) -> int:
    if not name or name[0].upper() not in _LETTER_SEMITONES:
        raise InvalidArgumentError(f"Unknown note name {name!r}")
    semitone = _LETTER_SEMITONES[name[0].upper()]
    for accidental in name[1:]:
        if accidental == "#":
            semitone += 1
        elif accidental == "b":
            semitone -= 1
        else:
            raise InvalidArgumentError(f"Unknown note name {name!r}")
    return semitone


def parse_semitone(name: str) -> int:
    """Semitone index (0..11) for a spelling like ``C``, ``F#`` or ``Bb``."""
    return _spelling_offset(name) % 12


@dataclass(frozen=True, order=True)
class Pitch:
    midi: int

    def __post_init__(self) -> None:
        if not MIDI_MIN <= self.midi <= MIDI_MAX:
            raise PitchRangeError(f"MIDI note {self.midi} is outside {MIDI_MIN}..{MIDI_MAX}")

    @classmethod
    def from_name(cls, name: str) -> "Pitch":
        split = len(name.rstrip("0123456789"))
        if split > 0 and name[split - 1:split] == "-":
            split -= 1
        letters, octave = name[:split], name[split:]
        if not octave:
            raise InvalidArgumentError(f"Note name {name!r} has no octave")
        # Cb4 and B#4 cross the octave boundary, so keep the unwrapped offset
        return cls((int(octave) + 1) * 12 + _spelling_offset(letters))

    @property
    def octave(self) -> int:
        return self.midi // 12 - 1

    @property
    def semitone(self) -> int:
        return self.midi % 12

    @property
    def name(self) -> str:
        return f"{SHARP_NAMES[self.semitone]}{self.octave}"

    @property
    def frequency(self) -> float:
        return 440.0 * 2 ** ((self.midi - 69) / 12)

    def transpose(self, semitones: int) -> "Pitch":
        return Pitch(self.midi + semitones)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class NoteSet:
    selected: Tuple[Pitch, ...]
    harmonics: Tuple[Pitch, ...] = ()

    @property
    def pitches(self) -> Tuple[Pitch, ...]:
        return (self.selected + self.harmonics)[:MAX_NOTES]

    @property
    def names(self) -> List[str]:
        return [pitch.name for pitch in self.pitches]

    @property
    def midi_numbers(self) -> List[int]:
        return [pitch.midi for pitch in self.pitches]

    def __iter__(self) -> Iterator[Pitch]:
        return iter(self.pitches)

    def __len__(self) -> int:
        return len(self.pitches)


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    samples: np.ndarray = field(repr=False)
    sample_rate: int

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    def __len__(self) -> int:
        return len(self.samples)


class InstrumentFamily(Enum):
    SYNTH = "synth"
    PIANO = "piano"
    FM = "fm"
    AM = "am"
    PLUCK = "pluck"
    METAL = "metal"


class InstrumentKind(Enum):
    SYNTH = "synth"
    SAMPLED = "sampled"


@dataclass(frozen=True)
class InstrumentKey:
    name: str
    kind: InstrumentKind
    family: InstrumentFamily
    program: int = 0  # General MIDI program

    @property
    def is_sampled(self) -> bool:
        return self.kind is InstrumentKind.SAMPLED


def file_safe_note_name(name: str) -> str:
    """``C#4`` -> ``Csharp4``, ``Eb4`` -> ``Eflat4``."""
    return name.replace("#", "sharp").replace("b", "flat")


def note_name_from_file_safe(stem: str) -> str:
    return stem.replace("sharp", "#").replace("flat", "b")
