"""
Discord rendering of an active game session.
"""
import logging
from typing import Awaitable, Callable, Optional

import discord

from . import strings
from .game_controller import (
    EVENT_FORMATTED_TIME,
    EVENT_GAME_RESULT,
    EVENT_QUESTION,
    GameController,
)
from .models import GameResult
from .results_view import build_result_embed

logger = logging.getLogger(__name__)

COLOR_ENOUGH = 0x00ff00
COLOR_NOT_ENOUGH = 0xff6600


def build_game_embed(controller: GameController) -> discord.Embed:
    """Build the embed showing the current question, time and progress."""
    progress = controller.progress
    question = controller.question
    on_track = bool(progress and progress.enough_count and progress.enough_percent)

    embed = discord.Embed(
        title=f"🧮 Level {controller.level.name.title()}",
        description=(
            strings.QUESTION_PROMPT.format(question.sum, question.visible_value)
            if question else "Preparing question..."
        ),
        color=COLOR_ENOUGH if on_track else COLOR_NOT_ENOUGH
    )

    if question:
        embed.add_field(
            name="🔢 Options",
            value=" | ".join(str(option) for option in question.options),
            inline=False
        )

    embed.add_field(
        name="⏱️ Time Remaining",
        value=controller.formatted_time or "--:--",
        inline=True
    )

    count_mark = "✅" if progress and progress.enough_count else "❌"
    percent_mark = "✅" if progress and progress.enough_percent else "❌"
    percent = progress.percent_of_right_answers if progress else 0
    embed.add_field(
        name="📊 Progress",
        value=(
            f"{count_mark} {controller.progress_text}\n"
            f"{percent_mark} {percent}% (minimum {controller.game_settings.min_percent_of_right_answers}%)"
        ),
        inline=True
    )
    embed.set_footer(text="Answer with /answer <number>")
    return embed


class GameScreen:
    """Keeps one channel message in sync with a game controller."""

    def __init__(
        self,
        controller: GameController,
        channel: discord.abc.Messageable,
        on_finished: Optional[Callable[[GameResult], Awaitable[None]]] = None
    ):
        self.controller = controller
        self.channel = channel
        self.message: Optional[discord.Message] = None
        self._on_finished = on_finished

        controller.add_listener(EVENT_QUESTION, self._on_question)
        controller.add_listener(EVENT_FORMATTED_TIME, self._on_time)
        controller.add_listener(EVENT_GAME_RESULT, self._on_result)

    async def _on_question(self, question) -> None:
        await self.refresh()

    async def _on_time(self, formatted_time: str) -> None:
        await self.refresh()

    async def _on_result(self, result: GameResult) -> None:
        try:
            await self.channel.send(embed=build_result_embed(result))
        except discord.HTTPException as e:
            logger.error(f"Failed to send result for session {self.controller.session_id}: {e}")

        if self._on_finished is not None:
            await self._on_finished(result)

    async def refresh(self) -> None:
        """Send or edit the game message; Discord errors never break the session."""
        embed = build_game_embed(self.controller)
        try:
            if self.message is None:
                self.message = await self.channel.send(embed=embed)
            else:
                await self.message.edit(embed=embed)
        except discord.HTTPException as e:
            logger.warning(f"Failed to update game message for session {self.controller.session_id}: {e}")
