import random

from harmonics.cogs.generator import Generator, GeneratorSession, describe_session, progress_bar
from harmonics.music import ScaleSelection, generate_note_set, instrument_key
from harmonics.music.instruments import DEFAULT_INSTRUMENT


def test_describe_session_lists_notes_and_scale() -> None:
    selection = ScaleSelection.from_names("A", "Natural Minor", "Ionian")
    note_set = generate_note_set(selection, 2, random.Random(0))
    session = GeneratorSession(selection=selection, instrument=instrument_key("harp"), note_set=note_set)

    text = describe_session(session)
    assert ", ".join(note_set.names) in text
    assert "A4, B4, C5, D5, E5, F5, G5" in text
    assert "A Natural Minor (Ionian) · harp" in text


def test_progress_bar() -> None:
    assert progress_bar(0.0, 4) == "▱▱▱▱"
    assert progress_bar(0.5, 4) == "▰▰▱▱"
    assert progress_bar(1.0, 4) == "▰▰▰▰"


def test_generate_defaults_to_the_default_instrument() -> None:
    defaults = {param.name: param.default for param in Generator.generate.parameters}
    assert defaults["instrument"] == DEFAULT_INSTRUMENT.name == "Synth"
    assert instrument_key(defaults["instrument"]) is DEFAULT_INSTRUMENT
