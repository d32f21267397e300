from __future__ import annotations

import logging
from typing import Any

import discord
from discord import app_commands

from src.domain.errors import NoActivePuzzle, PuzzleError, ValidationError
from src.domain.models import EndGameResult, LeaderboardEntry, PuzzleState, SubmissionResult
from src.services.puzzle_service import PuzzleService

logger = logging.getLogger(__name__)

MAX_LISTED_WORDS = 40


def session_key_for(user: discord.abc.User) -> str:
    return f"discord:{user.id}"


def spaced(letters: str) -> str:
    return " ".join(letters) if letters else "—"


# =====================
# RENDERING
# =====================
def render_state(state: PuzzleState) -> str:
    lines = [
        f"**Pool:** `{spaced(state.puzzle_string)}`",
        f"**Remaining:** `{spaced(state.remaining_letters)}`",
        f"**Score:** {state.total_score}",
    ]
    if state.submissions:
        words = ", ".join(f"{s.word} ({s.score})" for s in state.submissions)
        lines.append(f"**Words:** {words}")
    if not state.is_active:
        lines.append("🏁 This puzzle is finished. Start a new one with `/puzzle start`.")
    return "\n".join(lines)


def render_result(result: SubmissionResult) -> str:
    text = (
        f"✅ **{result.word}** +{result.score} (total **{result.total_score}**)\n"
        f"**Remaining:** `{spaced(result.remaining_letters)}`"
    )
    if result.is_complete:
        text += "\n🏁 No more words can be made. Puzzle complete!"
    return text


def render_end(result: EndGameResult) -> str:
    text = f"🏁 Game over. Final score: **{result.total_score}**"
    if not result.remaining_words:
        return text + "\nNo words were left. Perfect clear!"

    shown = result.remaining_words[:MAX_LISTED_WORDS]
    text += f"\nYou could still have made {len(result.remaining_words)} word(s): " + ", ".join(shown)
    if len(result.remaining_words) > len(shown):
        text += ", …"
    return text


def render_leaderboard(entries: list[LeaderboardEntry]) -> str:
    if not entries:
        return "No words on the board yet."
    return "\n".join(f"**{i}.** {e.word} — {e.score}" for i, e in enumerate(entries, start=1))


# =====================
# PUZZLE COMMANDS
# =====================
class PuzzleCommands(app_commands.Group):
    def __init__(self, *, puzzles: PuzzleService, channel_id: int = 0) -> None:
        super().__init__(name="puzzle", description="Letter pool word puzzle")
        self._puzzles = puzzles
        self._channel_id = int(channel_id)

    # -------------
    # Helpers
    # -------------

    async def _guard_channel(self, interaction: discord.Interaction) -> bool:
        if self._channel_id and int(getattr(interaction, "channel_id", 0) or 0) != self._channel_id:
            await interaction.response.send_message(f"Use this in <#{self._channel_id}> 🔤", ephemeral=True)
            return False
        return True

    @staticmethod
    def _embed(title: str, description: str) -> discord.Embed:
        return discord.Embed(title=title, description=description)

    # -------------
    # Commands
    # -------------

    @app_commands.command(name="start", description="Start a puzzle (or show the one you're playing)")
    async def start(self, interaction: discord.Interaction) -> None:
        if not await self._guard_channel(interaction):
            return
        state = await self._puzzles.create_puzzle(session_key_for(interaction.user))
        await interaction.response.send_message(embed=self._embed("🔤 Letter Pool", render_state(state)), ephemeral=True)

    @app_commands.command(name="word", description="Submit a word made from your remaining letters")
    @app_commands.describe(word="The word to play")
    async def word(self, interaction: discord.Interaction, word: str) -> None:
        if not await self._guard_channel(interaction):
            return
        try:
            result = await self._puzzles.submit_word(session_key_for(interaction.user), word)
        except NoActivePuzzle:
            await interaction.response.send_message("You have no puzzle running. Use `/puzzle start`.", ephemeral=True)
            return
        except ValidationError as e:
            await interaction.response.send_message(f"❌ {e}", ephemeral=True)
            return
        await interaction.response.send_message(render_result(result), ephemeral=True)

    @app_commands.command(name="state", description="Show your puzzle")
    async def state(self, interaction: discord.Interaction) -> None:
        if not await self._guard_channel(interaction):
            return
        try:
            state = await self._puzzles.get_puzzle_state(session_key_for(interaction.user), include_finished=True)
        except NoActivePuzzle:
            await interaction.response.send_message("You have no puzzle yet. Use `/puzzle start`.", ephemeral=True)
            return
        await interaction.response.send_message(embed=self._embed("🔤 Letter Pool", render_state(state)), ephemeral=True)

    @app_commands.command(name="end", description="End your puzzle and see the words you missed")
    async def end(self, interaction: discord.Interaction) -> None:
        if not await self._guard_channel(interaction):
            return
        try:
            result = await self._puzzles.end_game(session_key_for(interaction.user))
        except NoActivePuzzle:
            await interaction.response.send_message("You have no puzzle running.", ephemeral=True)
            return
        await interaction.response.send_message(render_end(result), ephemeral=True)

    @app_commands.command(name="leaderboard", description="Best words across all puzzles")
    async def leaderboard(self, interaction: discord.Interaction) -> None:
        entries = await self._puzzles.get_leaderboard()
        await interaction.response.send_message(embed=self._embed("🏆 Top Words", render_leaderboard(entries)))

    async def on_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        original = getattr(error, "original", error)
        logger.exception("Puzzle command failed", exc_info=original)
        message = str(original) if isinstance(original, PuzzleError) else "Something went wrong. Please try again."
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)


# =====================
# SETUP
# =====================
async def setup(bot: discord.Client) -> None:
    services: dict[str, Any] = getattr(bot, "services", {})
    existing = {c.name for c in bot.tree.get_commands()}

    if "puzzle" not in existing:
        puzzles = services.get("puzzles")
        if puzzles:
            bot.tree.add_command(PuzzleCommands(puzzles=puzzles, channel_id=services.get("puzzle_channel_id", 0)))
        else:
            logger.warning("puzzles service not found; /puzzle commands not registered")

    logger.info(
        "Discord commands registered: %s",
        " | ".join(c.name for c in bot.tree.get_commands()) or "(none)",
    )
