import pytest

import main
from harmonics.music.cache import InstrumentCache
from harmonics.music.synthesis import DEFAULT_SAMPLE_RATE


def test_sample_rate_defaults(monkeypatch) -> None:
    monkeypatch.delenv("HARMONICS_SAMPLE_RATE", raising=False)
    assert main.load_sample_rate() == DEFAULT_SAMPLE_RATE


def test_sample_rate_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("HARMONICS_SAMPLE_RATE", "22050")
    assert main.load_sample_rate() == 22050


@pytest.mark.parametrize("raw", ["fast", "0", "-8000"])
def test_bad_sample_rate_is_rejected(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("HARMONICS_SAMPLE_RATE", raw)
    with pytest.raises(RuntimeError):
        main.load_sample_rate()


def test_instrument_cache_reads_resource_locations(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("SAMPLE_LIBRARY_DIR", str(tmp_path))
    monkeypatch.delenv("SOUNDFONT_PATH", raising=False)
    cache = main.build_instrument_cache(8000)
    assert isinstance(cache, InstrumentCache)
    assert cache._loader._sample_dir == tmp_path
