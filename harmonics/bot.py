import asyncio
import logging
import os
from typing import Optional

import discord
from discord.ext import commands

from harmonics.music import INSTRUMENTS, InstrumentCache
from harmonics.music.synthesis import DEFAULT_SAMPLE_RATE


class HarmonicsBot(commands.Bot):
    """Discord bot that generates scale notes and their fifths, and renders them to audio."""

    def __init__(self, instruments: InstrumentCache, sample_rate: int = DEFAULT_SAMPLE_RATE) -> None:
        intents = discord.Intents.default()
        super().__init__(
            command_prefix=commands.when_mentioned_or("!"),  # fallback prefix
            intents=intents,
            application_id=self._load_application_id(),
        )
        self._sync_guild: Optional[int] = self._load_sync_guild()
        self._log = logging.getLogger("harmonics.bot")
        self.sample_rate = sample_rate
        self.instruments = instruments
        self._preload_task: Optional["asyncio.Task[object]"] = None

    @staticmethod
    def _load_application_id() -> Optional[int]:
        raw_id = os.getenv("DISCORD_APPLICATION_ID")
        return int(raw_id) if raw_id else None

    @staticmethod
    def _load_sync_guild() -> Optional[int]:
        raw_guild = os.getenv("DISCORD_SYNC_GUILD_ID")
        return int(raw_guild) if raw_guild else None

    async def setup_hook(self) -> None:
        await self.load_extension("harmonics.cogs.generator")
        self._preload_task = asyncio.create_task(self._preload_instruments())
        if self._sync_guild:
            guild = discord.Object(id=self._sync_guild)
            self._log.info("Syncing commands to guild %s", self._sync_guild)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        else:
            self._log.info("Syncing commands globally (can take up to an hour).")
            await self.tree.sync()

    async def _preload_instruments(self) -> None:
        def log_progress(fraction: float) -> None:
            self._log.info("Preloading instruments: %.0f%%", fraction * 100)

        failed = await self.instruments.preload_all(INSTRUMENTS.values(), on_progress=log_progress)
        if failed:
            self._log.warning(
                "Using synth voices for %s", ", ".join(key.name for key in failed)
            )
