"""
Repository giving the game controller access to settings and questions.
"""
import logging
from typing import Optional

from .config_manager import ConfigManager
from .models import GameSettings, Level, Question
from .question_generator import QuestionGenerator


class GameRepository:
    """Facade over the settings lookup and the question generator."""

    def __init__(
        self,
        config_manager: ConfigManager,
        question_generator: Optional[QuestionGenerator] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager
        self.question_generator = question_generator or QuestionGenerator(
            count_of_options=config_manager.get_count_of_options()
        )

    def fetch_settings(self, level: Level) -> GameSettings:
        """Return the settings for ``level``; raises ConfigurationMissingError if unknown."""
        return self.config_manager.get_game_settings(level)

    def generate_question(self, max_sum_value: int) -> Question:
        return self.question_generator.generate_question(max_sum_value)
