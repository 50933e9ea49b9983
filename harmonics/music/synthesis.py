import math
from typing import Callable, Dict, Union

import numpy as np

from .errors import InvalidArgumentError
from .types import InstrumentFamily, Pitch, SampleBuffer

DEFAULT_SAMPLE_RATE = 44100
ATTACK_SECONDS = 0.1
RELEASE_SECONDS = 0.5

Waveform = Callable[[np.ndarray, float], np.ndarray]

TWO_PI = 2 * math.pi


def _synth(t: np.ndarray, freq: float) -> np.ndarray:
    return 0.3 * np.sin(TWO_PI * freq * t)


def _piano(t: np.ndarray, freq: float) -> np.ndarray:
    return (
        0.3 * np.sin(TWO_PI * freq * t)
        + 0.15 * np.sin(TWO_PI * 2 * freq * t)
        + 0.1 * np.sin(TWO_PI * 3 * freq * t)
    )


def _fm(t: np.ndarray, freq: float) -> np.ndarray:
    modulator = 0.5 * np.sin(TWO_PI * 2 * freq * t)
    return 0.3 * np.sin(TWO_PI * freq * t + modulator)


def _am(t: np.ndarray, freq: float) -> np.ndarray:
    tremolo = 0.5 + 0.3 * np.sin(TWO_PI * 1.5 * freq * t)
    return 0.3 * np.sin(TWO_PI * freq * t) * tremolo


def _pluck(t: np.ndarray, freq: float) -> np.ndarray:
    return 0.4 * np.sin(TWO_PI * freq * t) * np.exp(-2 * t)


def _metal(t: np.ndarray, freq: float) -> np.ndarray:
    return (
        0.2 * np.sin(TWO_PI * freq * t)
        + 0.1 * np.sin(TWO_PI * 2.1 * freq * t)
        + 0.05 * np.sin(TWO_PI * 3.2 * freq * t)
    )


WAVEFORMS: Dict[InstrumentFamily, Waveform] = {
    InstrumentFamily.SYNTH: _synth,
    InstrumentFamily.PIANO: _piano,
    InstrumentFamily.FM: _fm,
    InstrumentFamily.AM: _am,
    InstrumentFamily.PLUCK: _pluck,
    InstrumentFamily.METAL: _metal,
}


def envelope(t: np.ndarray, duration: float) -> np.ndarray:
    """Linear attack and release ramps; when they overlap the smaller one wins."""
    attack = t / ATTACK_SECONDS
    release = (duration - t) / RELEASE_SECONDS
    return np.clip(np.minimum(np.minimum(attack, release), 1.0), 0.0, 1.0)


def synthesize(
    family: InstrumentFamily,
    pitch: Union[Pitch, int],
    duration: float,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> SampleBuffer:
    if not isinstance(family, InstrumentFamily):
        raise InvalidArgumentError(f"Unknown instrument family {family!r}")
    if sample_rate <= 0:
        raise InvalidArgumentError(f"sample_rate must be positive, got {sample_rate}")
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidArgumentError(f"duration must be positive, got {duration}")
    if not isinstance(pitch, Pitch):
        pitch = Pitch(pitch)

    count = max(1, int(round(duration * sample_rate)))
    t = np.arange(count, dtype=np.float64) / sample_rate
    wave = WAVEFORMS[family](t, pitch.frequency)
    samples = np.clip(wave * envelope(t, duration), -1.0, 1.0)
    return SampleBuffer(samples.astype(np.float32), sample_rate)
