"""Note generation, synthesis and export helpers for the harmonics bot."""

from .archive import archive_filename, export_archive, note_filename
from .cache import InstrumentCache, LoadState
from .errors import (
    ExportError,
    HarmonicsError,
    InvalidArgumentError,
    PitchRangeError,
    ResourceLoadError,
)
from .instruments import INSTRUMENTS, InstrumentLoader, SynthVoice, instrument_key
from .midi import note_set_summary, note_set_to_midi
from .note_selector import derive_harmonics, generate_note_set, select_notes
from .preview import melody_schedule, preview_schedule, render_schedule
from .synthesis import synthesize
from .theory import MODES, ROOTS, SCALES, Mode, ScaleSelection, build_scale, rotate
from .types import InstrumentFamily, InstrumentKey, NoteSet, Pitch, SampleBuffer
from .wav import encode

__all__ = [
    "INSTRUMENTS",
    "MODES",
    "ROOTS",
    "SCALES",
    "ExportError",
    "HarmonicsError",
    "InstrumentCache",
    "InstrumentFamily",
    "InstrumentKey",
    "InstrumentLoader",
    "InvalidArgumentError",
    "LoadState",
    "Mode",
    "NoteSet",
    "Pitch",
    "PitchRangeError",
    "ResourceLoadError",
    "SampleBuffer",
    "ScaleSelection",
    "SynthVoice",
    "archive_filename",
    "build_scale",
    "derive_harmonics",
    "encode",
    "export_archive",
    "generate_note_set",
    "instrument_key",
    "melody_schedule",
    "note_filename",
    "note_set_summary",
    "note_set_to_midi",
    "preview_schedule",
    "render_schedule",
    "rotate",
    "select_notes",
    "synthesize",
]
