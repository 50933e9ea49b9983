import logging
import os

from dotenv import load_dotenv

from harmonics import HarmonicsBot
from harmonics.music import InstrumentCache, InstrumentLoader
from harmonics.music.synthesis import DEFAULT_SAMPLE_RATE


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="[%(asctime)s] %(levelname)s:%(name)s: %(message)s",
    )


def load_sample_rate() -> int:
    raw_rate = os.getenv("HARMONICS_SAMPLE_RATE")
    if not raw_rate:
        return DEFAULT_SAMPLE_RATE
    try:
        rate = int(raw_rate)
    except ValueError:
        raise RuntimeError(f"HARMONICS_SAMPLE_RATE must be an integer, got {raw_rate!r}.") from None
    if rate <= 0:
        raise RuntimeError(f"HARMONICS_SAMPLE_RATE must be positive, got {rate}.")
    return rate


def build_instrument_cache(sample_rate: int) -> InstrumentCache:
    soundfont = os.getenv("SOUNDFONT_PATH")
    sample_dir = os.getenv("SAMPLE_LIBRARY_DIR")
    if not soundfont and not sample_dir:
        logging.getLogger("harmonics").info(
            "No SOUNDFONT_PATH or SAMPLE_LIBRARY_DIR set; sampled instruments will use synth voices."
        )
    loader = InstrumentLoader(soundfont_path=soundfont, sample_dir=sample_dir, sample_rate=sample_rate)
    return InstrumentCache(loader)


def main() -> None:
    load_dotenv()
    configure_logging()

    token = os.getenv("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("Set DISCORD_TOKEN in your environment or .env file.")

    sample_rate = load_sample_rate()
    bot = HarmonicsBot(build_instrument_cache(sample_rate), sample_rate=sample_rate)
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logging.getLogger("harmonics").info("Shutting down the harmonics bot.")


if __name__ == "__main__":
    main()
