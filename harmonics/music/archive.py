import asyncio
import io
import logging
import math
import zipfile
from typing import Optional

from .cache import ProgressCallback, report_progress
from .errors import ExportError, InvalidArgumentError
from .synthesis import DEFAULT_SAMPLE_RATE, synthesize
from .theory import PitchClass, ScaleTemplate
from .types import InstrumentFamily, NoteSet, Pitch, file_safe_note_name
from .wav import encode

_LOG = logging.getLogger("harmonics.archive")


def _format_seconds(duration: float) -> str:
    return f"{duration:g}"


def note_filename(index: int, pitch: Pitch) -> str:
    """``note_<1-based index>_<name>.wav`` with ``#`` -> ``sharp`` and ``b`` -> ``flat``."""
    return f"note_{index}_{file_safe_note_name(pitch.name)}.wav"


def archive_filename(root: PitchClass, scale: ScaleTemplate, duration: float) -> str:
    return f"harmonics_samples_{root.name}_{scale.name.lower()}_{_format_seconds(duration)}s.zip"


async def export_archive(
    note_set: NoteSet,
    family: InstrumentFamily,
    duration: float,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    on_progress: Optional[ProgressCallback] = None,
) -> bytes:
    """Render every note to its own WAV and zip them, all or nothing.

    Control goes back to the event loop after each note so progress can be shown.
    """
    if not len(note_set):
        raise InvalidArgumentError("Nothing to export: the note set is empty.")
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidArgumentError(f"duration must be positive, got {duration}")
    if sample_rate <= 0:
        raise InvalidArgumentError(f"sample_rate must be positive, got {sample_rate}")

    pitches = note_set.pitches
    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for idx, pitch in enumerate(pitches, start=1):
                wav_bytes = encode(synthesize(family, pitch, duration, sample_rate))
                archive.writestr(note_filename(idx, pitch), wav_bytes)
                await report_progress(on_progress, idx / len(pitches))
                await asyncio.sleep(0)
    except Exception as exc:
        _LOG.exception("Sample export failed")
        raise ExportError(f"Couldn't export the samples ({exc}).") from exc

    _LOG.info("Exported %d samples (%s, %ss)", len(pitches), family.value, _format_seconds(duration))
    return buffer.getvalue()
