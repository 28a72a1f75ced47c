"""
Presentation of a finished game session.
"""
from dataclasses import dataclass

import discord

from . import strings
from .game_controller import calculate_percent
from .models import GameResult

COLOR_WINNER = 0x00ff00
COLOR_LOSER = 0xff0000


@dataclass(frozen=True)
class ResultDisplay:
    """Everything the results screen shows for one GameResult."""
    winner: bool
    icon: str
    title: str
    score_percentage: str
    required_score: str
    score_answers: str
    required_percentage: str


def percent_of_right_answers(result: GameResult) -> int:
    return calculate_percent(result.count_of_right_answers, result.count_of_questions)


def result_icon(result: GameResult) -> str:
    return strings.RESULT_ICON_SUCCESS if result.winner else strings.RESULT_ICON_FAILURE


def build_result_display(result: GameResult) -> ResultDisplay:
    """Project a GameResult onto the texts of the results screen."""
    settings = result.game_settings
    return ResultDisplay(
        winner=result.winner,
        icon=result_icon(result),
        title=strings.RESULT_TITLE_WINNER if result.winner else strings.RESULT_TITLE_LOSER,
        score_percentage=strings.SCORE_PERCENTAGE.format(percent_of_right_answers(result)),
        required_score=strings.REQUIRED_SCORE.format(settings.min_count_of_right_answers),
        score_answers=strings.SCORE_ANSWERS.format(result.count_of_right_answers),
        required_percentage=strings.REQUIRED_PERCENTAGE.format(settings.min_percent_of_right_answers),
    )


def build_result_embed(result: GameResult) -> discord.Embed:
    """
    Build the results embed sent when a session finishes.

    Args:
        result: Result of the finished session

    Returns:
        Embed colored green for a win and red for a loss
    """
    display = build_result_display(result)

    embed = discord.Embed(
        title=f"{display.icon} {display.title}",
        color=COLOR_WINNER if display.winner else COLOR_LOSER
    )
    embed.add_field(
        name="🎯 Right Answers",
        value=f"{display.score_answers}\n{display.required_score}",
        inline=False
    )
    embed.add_field(
        name="📊 Percentage",
        value=f"{display.score_percentage}\n{display.required_percentage}",
        inline=False
    )
    embed.set_footer(text=strings.RETRY_HINT)
    return embed
