"""Scales, modes and pitch classes for 12-tone equal temperament."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Sequence, Tuple, Union

from .errors import InvalidArgumentError, PitchRangeError
from .types import MIDI_MAX, MIDI_MIN, Pitch, parse_semitone

ROOT_NAMES: Tuple[str, ...] = ("C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B")
DEFAULT_OCTAVE = 4


@dataclass(frozen=True)
class PitchClass:
    semitone: int
    name: str = field(compare=False)

    def __post_init__(self) -> None:
        if not 0 <= self.semitone <= 11:
            raise InvalidArgumentError(f"Pitch class {self.semitone} is outside 0..11")

    def __str__(self) -> str:
        return self.name


ROOTS: Tuple[PitchClass, ...] = tuple(PitchClass(idx, name) for idx, name in enumerate(ROOT_NAMES))


def parse_pitch_class(name: str) -> PitchClass:
    """Return the canonical root for any sharp or flat spelling (``Db`` -> ``C#``)."""
    return ROOTS[parse_semitone(name.strip())]


@dataclass(frozen=True)
class ScaleTemplate:
    name: str
    steps: Tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.steps) != 7 or any(step <= 0 for step in self.steps):
            raise InvalidArgumentError(f"{self.name}: a scale needs 7 positive steps, got {self.steps}")
        if sum(self.steps) != 12:
            raise InvalidArgumentError(f"{self.name}: steps must close the octave (sum to 12)")


SCALES: Tuple[ScaleTemplate, ...] = (
    ScaleTemplate("Major", (2, 2, 1, 2, 2, 2, 1)),
    ScaleTemplate("Natural Minor", (2, 1, 2, 2, 1, 2, 2)),
    ScaleTemplate("Harmonic Minor", (2, 1, 2, 2, 1, 3, 1)),
    ScaleTemplate("Melodic Minor", (2, 1, 2, 2, 2, 2, 1)),
)


def scale_template(name: str) -> ScaleTemplate:
    wanted = name.strip().lower()
    for template in SCALES:
        if template.name.lower() == wanted:
            return template
    raise InvalidArgumentError(f"Unknown scale {name!r}")


class Mode(IntEnum):
    IONIAN = 0
    DORIAN = 1
    PHRYGIAN = 2
    LYDIAN = 3
    MIXOLYDIAN = 4
    AEOLIAN = 5
    LOCRIAN = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Union[int, str]) -> "Mode":
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidArgumentError(f"Unknown mode {value!r}") from None
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(f"Mode degree must be in 0..6, got {value}") from None


MODES: Tuple[Mode, ...] = tuple(Mode)


def rotate(steps: Sequence[int], degree: int) -> Tuple[int, ...]:
    """Cyclic rotation of ``steps`` starting at ``degree``."""
    if not 0 <= degree < len(steps):
        raise InvalidArgumentError(f"Rotation degree must be in 0..{len(steps) - 1}, got {degree}")
    return tuple(steps[degree:]) + tuple(steps[:degree])


def build_scale(root: PitchClass, steps: Sequence[int], octave: int = DEFAULT_OCTAVE) -> List[Pitch]:
    """Root pitch at ``octave`` followed by one pitch per step (``len(steps) + 1`` in total).

    Raises ``PitchRangeError`` when any pitch would leave the MIDI range.
    """
    midi = (octave + 1) * 12 + root.semitone
    numbers = [midi]
    for step in steps:
        midi += step
        numbers.append(midi)
    if numbers[0] < MIDI_MIN or max(numbers) > MIDI_MAX:
        raise PitchRangeError(
            f"{root.name}{octave} with a climb of {sum(steps)} semitones leaves the MIDI range"
        )
    return [Pitch(number) for number in numbers]


@dataclass(frozen=True)
class ScaleSelection:
    root: PitchClass
    template: ScaleTemplate
    mode: Mode = Mode.IONIAN
    octave: int = DEFAULT_OCTAVE

    @classmethod
    def from_names(cls, root: str, scale: str, mode: Union[int, str] = 0, octave: int = DEFAULT_OCTAVE) -> "ScaleSelection":
        return cls(parse_pitch_class(root), scale_template(scale), Mode.parse(mode), octave)

    @property
    def steps(self) -> Tuple[int, ...]:
        return rotate(self.template.steps, int(self.mode))

    def pitches(self) -> List[Pitch]:
        return build_scale(self.root, self.steps, self.octave)

    def degrees(self) -> List[Pitch]:
        """The seven selectable scale pitches (octave closure dropped)."""
        return self.pitches()[:7]

    def describe(self) -> str:
        return f"{self.root.name} {self.template.name} ({self.mode.label})"
