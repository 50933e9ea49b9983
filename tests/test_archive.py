import asyncio
import io
import math
import zipfile
from typing import List

import pytest

from harmonics.music import archive
from harmonics.music.archive import archive_filename, export_archive, note_filename
from harmonics.music.errors import ExportError, InvalidArgumentError
from harmonics.music.theory import parse_pitch_class, scale_template
from harmonics.music.types import InstrumentFamily, NoteSet, Pitch

RATE = 8000


def c_major_set() -> NoteSet:
    selected = tuple(Pitch(n) for n in (60, 64, 67))
    harmonics = tuple(Pitch(n) for n in (67, 71, 74) * 3)
    return NoteSet(selected, harmonics)


def test_note_filenames_are_transliterated() -> None:
    assert note_filename(1, Pitch(60)) == "note_1_C4.wav"
    assert note_filename(12, Pitch(61)) == "note_12_Csharp4.wav"
    assert note_filename(3, Pitch.from_name("Bb3")) == "note_3_Asharp3.wav"


def test_archive_filename() -> None:
    root = parse_pitch_class("Eb")
    assert archive_filename(root, scale_template("Major"), 2.0) == "harmonics_samples_Eb_major_2s.zip"
    assert (
        archive_filename(root, scale_template("Harmonic Minor"), 1.5)
        == "harmonics_samples_Eb_harmonic minor_1.5s.zip"
    )


def test_export_writes_one_wav_per_note_in_order() -> None:
    progress: List[float] = []
    data = asyncio.run(
        export_archive(c_major_set(), InstrumentFamily.PLUCK, 0.25, RATE, on_progress=progress.append)
    )

    with zipfile.ZipFile(io.BytesIO(data)) as bundle:
        names = bundle.namelist()
        assert names[:4] == ["note_1_C4.wav", "note_2_E4.wav", "note_3_G4.wav", "note_4_G4.wav"]
        assert names[-1] == "note_12_D5.wav"
        assert len(names) == 12
        for name in names:
            payload = bundle.read(name)
            assert payload[:4] == b"RIFF"
            assert len(payload) == 44 + 2 * int(0.25 * RATE)

    assert progress == pytest.approx([i / 12 for i in range(1, 13)])


def test_export_is_all_or_nothing(monkeypatch) -> None:
    real_synthesize = archive.synthesize
    calls = []

    def flaky_synthesize(family, pitch, duration, sample_rate):
        calls.append(pitch)
        if len(calls) == 3:
            raise RuntimeError("synth crashed")
        return real_synthesize(family, pitch, duration, sample_rate)

    monkeypatch.setattr(archive, "synthesize", flaky_synthesize)
    progress: List[float] = []

    with pytest.raises(ExportError) as excinfo:
        asyncio.run(
            export_archive(c_major_set(), InstrumentFamily.SYNTH, 0.1, RATE, on_progress=progress.append)
        )

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(progress) == 2


@pytest.mark.parametrize(
    "note_set, duration, sample_rate",
    [
        (NoteSet(()), 1.0, RATE),
        (c_major_set(), 0.0, RATE),
        (c_major_set(), math.inf, RATE),
        (c_major_set(), math.nan, RATE),
        (c_major_set(), 1.0, 0),
    ],
)
def test_export_rejects_bad_arguments(note_set, duration, sample_rate) -> None:
    with pytest.raises(InvalidArgumentError):
        asyncio.run(export_archive(note_set, InstrumentFamily.SYNTH, duration, sample_rate))
