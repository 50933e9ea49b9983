import asyncio
import io
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from harmonics.music import (
    INSTRUMENTS,
    MODES,
    ROOTS,
    SCALES,
    HarmonicsError,
    InstrumentCache,
    InstrumentKey,
    NoteSet,
    ScaleSelection,
    archive_filename,
    export_archive,
    generate_note_set,
    instrument_key,
    melody_schedule,
    note_set_summary,
    note_set_to_midi,
    preview_schedule,
    render_schedule,
)
from harmonics.music.instruments import DEFAULT_INSTRUMENT
from harmonics.music.midi import MIDI_FILENAME, TEXT_FILENAME
from harmonics.music.note_selector import MAX_SELECTED, RandomSource
from harmonics.music.preview import ScheduledNote
from harmonics.music.synthesis import DEFAULT_SAMPLE_RATE

ROOT_CHOICES = [app_commands.Choice(name=root.name, value=root.name) for root in ROOTS]
SCALE_CHOICES = [app_commands.Choice(name=scale.name, value=scale.name) for scale in SCALES]
MODE_CHOICES = [app_commands.Choice(name=mode.label, value=int(mode)) for mode in MODES]
INSTRUMENT_CHOICES = [app_commands.Choice(name=name, value=name) for name in INSTRUMENTS]

NO_SESSION_HINT = "Run /generate first to pick some notes."


@dataclass
class GeneratorSession:
    selection: ScaleSelection
    instrument: InstrumentKey
    note_set: NoteSet


def describe_session(session: GeneratorSession) -> str:
    scale_names = ", ".join(pitch.name for pitch in session.selection.degrees())
    return (
        f"**Notes:** {', '.join(session.note_set.names)}\n"
        f"**Scale:** {scale_names}\n"
        f"{session.selection.describe()} · {session.instrument.name}"
    )


def progress_bar(fraction: float, width: int = 12) -> str:
    filled = int(round(fraction * width))
    return "▰" * filled + "▱" * (width - filled)


class Generator(commands.Cog):
    """Slash commands for generating notes and their harmonics."""

    def __init__(
        self,
        bot: commands.Bot,
        instruments: InstrumentCache,
        rng: Optional[RandomSource] = None,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> None:
        self.bot = bot
        self.instruments = instruments
        self.rng = rng or random.Random()
        self.sample_rate = sample_rate
        self.log = logging.getLogger("harmonics.generator")
        self._sessions: Dict[int, GeneratorSession] = {}

    @app_commands.command(name="generate", description="Pick random scale notes and add a fifth above each.")
    @app_commands.describe(
        root="Root note of the scale",
        scale="Scale family",
        mode="Mode (rotation of the scale)",
        notes="How many scale notes to pick",
        instrument="Instrument for previews and samples",
    )
    @app_commands.choices(root=ROOT_CHOICES, scale=SCALE_CHOICES, mode=MODE_CHOICES, instrument=INSTRUMENT_CHOICES)
    async def generate(
        self,
        interaction: discord.Interaction,
        root: str = "C",
        scale: str = "Major",
        mode: int = 0,
        notes: app_commands.Range[int, 1, MAX_SELECTED] = 3,
        instrument: str = DEFAULT_INSTRUMENT.name,
    ) -> None:
        try:
            selection = ScaleSelection.from_names(root, scale, mode)
            key = instrument_key(instrument)
            note_set = generate_note_set(selection, notes, self.rng)
        except HarmonicsError as exc:
            await interaction.response.send_message(str(exc), ephemeral=True)
            return

        session = GeneratorSession(selection=selection, instrument=key, note_set=note_set)
        self._sessions[interaction.user.id] = session
        # warm the instrument while the user reads the notes
        await self.instruments.acquire(key, wait=False)

        embed = discord.Embed(
            title="Notes & Harmonics",
            description=describe_session(session),
            colour=discord.Colour.blurple(),
        )
        embed.set_footer(text="Try /preview, /melody, /midi or /samples")
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="preview", description="Hear the generated notes in order.")
    async def preview(self, interaction: discord.Interaction) -> None:
        session = await self._require_session(interaction)
        if session is None:
            return
        await self._send_rendering(interaction, session, preview_schedule(session.note_set), "preview.wav")

    @app_commands.command(name="melody", description="Hear the generated notes in a random order.")
    async def melody(self, interaction: discord.Interaction) -> None:
        session = await self._require_session(interaction)
        if session is None:
            return
        schedule = melody_schedule(session.note_set, self.rng)
        await self._send_rendering(interaction, session, schedule, "melody.wav")

    @app_commands.command(name="midi", description="Download the notes as a MIDI file and a text list.")
    async def midi(self, interaction: discord.Interaction) -> None:
        session = await self._require_session(interaction)
        if session is None:
            return
        midi_bytes = note_set_to_midi(session.note_set, session.instrument)
        summary = note_set_summary(session.note_set)
        files = [
            discord.File(io.BytesIO(midi_bytes), filename=MIDI_FILENAME),
            discord.File(io.BytesIO(summary.encode("utf-8")), filename=TEXT_FILENAME),
        ]
        await interaction.response.send_message(files=files)

    @app_commands.command(name="samples", description="Download every note as its own WAV, zipped.")
    @app_commands.describe(duration="Length of each sample in seconds")
    async def samples(
        self,
        interaction: discord.Interaction,
        duration: app_commands.Range[float, 0.1, 10.0] = 2.0,
    ) -> None:
        session = await self._require_session(interaction)
        if session is None:
            return

        await interaction.response.defer(thinking=True)

        async def show_progress(fraction: float) -> None:
            await interaction.edit_original_response(content=f"Rendering samples {progress_bar(fraction)}")

        try:
            data = await export_archive(
                session.note_set,
                session.instrument.family,
                duration,
                sample_rate=self.sample_rate,
                on_progress=show_progress,
            )
        except HarmonicsError as exc:
            await interaction.edit_original_response(content=str(exc))
            return

        filename = archive_filename(session.selection.root, session.selection.template, duration)
        await interaction.edit_original_response(
            content=f"{len(session.note_set)} samples, {duration:g}s each.",
            attachments=[discord.File(io.BytesIO(data), filename=filename)],
        )

    @app_commands.command(name="instruments", description="Which instruments are loaded.")
    async def instruments_status(self, interaction: discord.Interaction) -> None:
        lines: List[str] = []
        for name, key in INSTRUMENTS.items():
            lines.append(f"`{name}` · {key.kind.value} · {self.instruments.state(key).value}")
        embed = discord.Embed(
            title="Instruments",
            description="\n".join(lines),
            colour=discord.Colour.teal(),
        )
        embed.set_footer(text="Sampled instruments fall back to a synth voice until they load.")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="help", description="Show what the bot can do.")
    async def help(self, interaction: discord.Interaction) -> None:
        embed = discord.Embed(
            title="Harmonics Help",
            description="Pick notes from a scale, add a fifth above each, and listen or download.",
            colour=discord.Colour.blurple(),
        )
        embed.add_field(
            name="/generate",
            value="Choose root, scale, mode, 1–5 notes and an instrument; fills up to 12 notes with fifths.",
            inline=False,
        )
        embed.add_field(name="/preview", value="Play the notes in order.", inline=False)
        embed.add_field(name="/melody", value="Play the notes shuffled.", inline=False)
        embed.add_field(name="/midi", value="Download `sequence.mid` and `sequence.txt`.", inline=False)
        embed.add_field(name="/samples", value="Download a zip with one WAV per note.", inline=False)
        embed.add_field(name="/instruments", value="See which instruments are loaded.", inline=False)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _require_session(self, interaction: discord.Interaction) -> Optional[GeneratorSession]:
        session = self._sessions.get(interaction.user.id)
        if session is None:
            await interaction.response.send_message(NO_SESSION_HINT, ephemeral=True)
        return session

    async def _send_rendering(
        self,
        interaction: discord.Interaction,
        session: GeneratorSession,
        schedule: List[ScheduledNote],
        filename: str,
    ) -> None:
        await interaction.response.defer(thinking=True)
        voice = await self.instruments.acquire(session.instrument, wait=False)
        try:
            buffer = await asyncio.to_thread(render_schedule, schedule, voice, self.sample_rate)
        except Exception as exc:  # pydub can raise many things, keep message friendly
            self.log.exception("Failed to render %s", filename)
            await interaction.followup.send(f"Couldn't render that ({exc}).")
            return
        await interaction.followup.send(
            content=f"{session.selection.describe()} · {voice.name}",
            file=discord.File(buffer, filename=filename),
        )


async def setup(bot: commands.Bot) -> None:
    instruments = getattr(bot, "instruments", None)
    if instruments is None:
        raise RuntimeError("The generator cog needs a bot with an instrument cache.")
    sample_rate = getattr(bot, "sample_rate", DEFAULT_SAMPLE_RATE)
    await bot.add_cog(Generator(bot, instruments, sample_rate=sample_rate))
