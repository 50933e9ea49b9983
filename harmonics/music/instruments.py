import asyncio
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

import numpy as np
import pretty_midi
from pydub import AudioSegment

from .errors import InvalidArgumentError, ResourceLoadError
from .synthesis import DEFAULT_SAMPLE_RATE, synthesize
from .types import (
    InstrumentFamily,
    InstrumentKey,
    InstrumentKind,
    Pitch,
    SampleBuffer,
    note_name_from_file_safe,
)
from .wav import pcm16

_LOG = logging.getLogger("harmonics.instruments")

SAMPLE_SUFFIXES = (".wav", ".flac", ".ogg", ".mp3")


def _synth(name: str, family: InstrumentFamily) -> InstrumentKey:
    return InstrumentKey(name, InstrumentKind.SYNTH, family)


def _sampled(name: str, family: InstrumentFamily, program: int) -> InstrumentKey:
    return InstrumentKey(name, InstrumentKind.SAMPLED, family, program)


INSTRUMENTS: Dict[str, InstrumentKey] = {
    key.name: key
    for key in (
        _synth("Synth", InstrumentFamily.SYNTH),
        _synth("AMSynth", InstrumentFamily.AM),
        _synth("FMSynth", InstrumentFamily.FM),
        _synth("DuoSynth", InstrumentFamily.SYNTH),
        _synth("MonoSynth", InstrumentFamily.SYNTH),
        _synth("MembraneSynth", InstrumentFamily.PLUCK),
        _synth("PluckSynth", InstrumentFamily.PLUCK),
        _synth("MetalSynth", InstrumentFamily.METAL),
        _synth("PolySynth", InstrumentFamily.SYNTH),
        _sampled("piano", InstrumentFamily.PIANO, 0),  # Acoustic Grand Piano
        _sampled("violin", InstrumentFamily.SYNTH, 40),
        _sampled("cello", InstrumentFamily.SYNTH, 42),
        _sampled("flute", InstrumentFamily.SYNTH, 73),
        _sampled("harp", InstrumentFamily.PLUCK, 46),  # Orchestral Harp
        _sampled("vibraphone", InstrumentFamily.METAL, 11),
    )
}
DEFAULT_INSTRUMENT = INSTRUMENTS["Synth"]


def instrument_key(name: str) -> InstrumentKey:
    wanted = name.strip().lower()
    for key_name, key in INSTRUMENTS.items():
        if key_name.lower() == wanted:
            return key
    raise InvalidArgumentError(f"Unknown instrument {name!r}")


def buffer_to_segment(buffer: SampleBuffer) -> AudioSegment:
    return AudioSegment(
        pcm16(buffer.samples),
        frame_rate=buffer.sample_rate,
        sample_width=2,
        channels=1,
    )


def repitch(segment: AudioSegment, semitones: int) -> AudioSegment:
    """Shift pitch (and length) by relabelling the frame rate of the same frames.

    Resample the result with ``set_frame_rate`` before mixing it with other audio.
    """
    frame_rate = int(round(segment.frame_rate * 2 ** (semitones / 12)))
    return segment._spawn(segment.raw_data, overrides={"frame_rate": frame_rate})


class Voice(Protocol):
    name: str

    def render(self, pitch: Pitch, duration: float, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioSegment:
        ...


class SynthVoice:
    """Waveform voice; also the stand-in while a sampled instrument is unavailable."""

    def __init__(self, family: InstrumentFamily) -> None:
        self.family = family
        self.name = f"synth:{family.value}"

    def render(self, pitch: Pitch, duration: float, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioSegment:
        return buffer_to_segment(synthesize(self.family, pitch, duration, sample_rate))

    def __repr__(self) -> str:
        return f"SynthVoice({self.family.value})"


class SampledVoice:
    """Recorded notes, repitched from the nearest sample by changing the frame rate."""

    def __init__(self, key: InstrumentKey, samples: Mapping[int, AudioSegment]) -> None:
        if not samples:
            raise ResourceLoadError(f"{key.name}: sample library is empty")
        self.key = key
        self.name = f"samples:{key.name}"
        self._samples = dict(samples)

    @property
    def notes(self) -> list[int]:
        return sorted(self._samples)

    def render(self, pitch: Pitch, duration: float, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioSegment:
        nearest = min(self._samples, key=lambda midi: (abs(midi - pitch.midi), midi))
        source = self._samples[nearest]
        shifted = repitch(source, pitch.midi - nearest)
        segment = shifted.set_frame_rate(sample_rate).set_channels(1).set_sample_width(2)
        duration_ms = int(round(duration * 1000))
        segment = segment[:duration_ms]
        return segment.fade_out(min(60, len(segment) // 2))


class SoundfontVoice:
    """General MIDI program rendered through fluidsynth via pretty_midi."""

    def __init__(self, key: InstrumentKey, sf2_path: str) -> None:
        self.key = key
        self.name = f"soundfont:{key.name}"
        self._sf2_path = sf2_path

    def render(self, pitch: Pitch, duration: float, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioSegment:
        pm = pretty_midi.PrettyMIDI(resolution=960)
        track = pretty_midi.Instrument(program=self.key.program)
        track.notes.append(pretty_midi.Note(velocity=100, pitch=pitch.midi, start=0.0, end=duration))
        pm.instruments.append(track)

        audio = pm.fluidsynth(fs=sample_rate, sf2_path=self._sf2_path)
        if audio.ndim > 1:
            audio = audio.mean(axis=1)
        # fluidsynth renders a release tail; cut it so notes never overlap
        audio = audio[: int(round(duration * sample_rate))]
        segment = AudioSegment(
            pcm16(np.clip(audio, -1.0, 1.0)),
            frame_rate=sample_rate,
            sample_width=2,
            channels=1,
        )
        return segment.fade_out(min(50, len(segment) // 2))


def read_sample_library(directory: Path) -> Dict[str, str]:
    """Map note names to files for a ``<dir>/<NoteName>.wav`` layout (``Csharp4.wav``)."""
    library: Dict[str, str] = {}
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() in SAMPLE_SUFFIXES:
            library[note_name_from_file_safe(path.stem)] = str(path)
    return library


class InstrumentLoader:
    """Builds a playable voice for an instrument key.

    Sampled instruments come from an explicit note->file map, then from
    ``sample_dir/<instrument>/``, then from the soundfont. Without any of those
    the load fails and the cache substitutes a synth voice.
    """

    def __init__(
        self,
        soundfont_path: Optional[str] = None,
        sample_dir: Optional[str] = None,
        sample_maps: Optional[Mapping[str, Mapping[str, str]]] = None,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> None:
        self._soundfont_path = soundfont_path
        self._sample_dir = Path(sample_dir) if sample_dir else None
        self._sample_maps = dict(sample_maps or {})
        self._sample_rate = sample_rate

    async def __call__(self, key: InstrumentKey) -> Voice:
        return await asyncio.to_thread(self.load, key)

    def load(self, key: InstrumentKey, sample_urls: Optional[Mapping[str, str]] = None) -> Voice:
        if not key.is_sampled:
            return SynthVoice(key.family)

        library = sample_urls or self._sample_maps.get(key.name) or self._scan_sample_dir(key)
        try:
            if library:
                return self._load_samples(key, library)
            if self._soundfont_path:
                return self._load_soundfont(key, self._soundfont_path)
        except ResourceLoadError:
            raise
        except Exception as exc:  # pydub/fluidsynth raise a wide range of errors
            raise ResourceLoadError(f"{key.name}: {exc}") from exc
        raise ResourceLoadError(f"{key.name}: no sample library or soundfont configured")

    def _scan_sample_dir(self, key: InstrumentKey) -> Dict[str, str]:
        if self._sample_dir is None:
            return {}
        folder = self._sample_dir / key.name
        if not folder.is_dir():
            return {}
        return read_sample_library(folder)

    def _load_samples(self, key: InstrumentKey, library: Mapping[str, str]) -> SampledVoice:
        samples: Dict[int, AudioSegment] = {}
        for note_name, location in library.items():
            samples[Pitch.from_name(note_name).midi] = AudioSegment.from_file(location)
        _LOG.info("Loaded %d samples for %s", len(samples), key.name)
        return SampledVoice(key, samples)

    def _load_soundfont(self, key: InstrumentKey, sf2_path: str) -> SoundfontVoice:
        if not Path(sf2_path).is_file():
            raise ResourceLoadError(f"{key.name}: soundfont {sf2_path} does not exist")
        voice = SoundfontVoice(key, sf2_path)
        voice.render(Pitch(60), 0.1, self._sample_rate)  # fails fast without pyfluidsynth
        _LOG.info("Loaded soundfont program %d for %s", key.program, key.name)
        return voice
