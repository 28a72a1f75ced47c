"""
Configuration manager for Composition game settings and parameters.
"""
import logging
from typing import Optional, Dict, Any

from .exceptions import ConfigurationMissingError
from .models import GameSettings, Level


class ConfigManager:
    """Manages per-level game settings and timer parameters."""

    # Default configuration values
    DEFAULT_LEVEL_SETTINGS = {
        Level.TEST: GameSettings(
            max_sum_value=10,
            min_count_of_right_answers=3,
            min_percent_of_right_answers=50,
            game_time_in_seconds=8
        ),
        Level.EASY: GameSettings(
            max_sum_value=10,
            min_count_of_right_answers=10,
            min_percent_of_right_answers=70,
            game_time_in_seconds=60
        ),
        Level.NORMAL: GameSettings(
            max_sum_value=20,
            min_count_of_right_answers=20,
            min_percent_of_right_answers=80,
            game_time_in_seconds=40
        ),
        Level.HARD: GameSettings(
            max_sum_value=30,
            min_count_of_right_answers=30,
            min_percent_of_right_answers=90,
            game_time_in_seconds=40
        ),
    }
    DEFAULT_TICK_INTERVAL = 1.0
    DEFAULT_COUNT_OF_OPTIONS = 6

    # Validation limits
    MIN_SUM_VALUE = 2
    MAX_SUM_VALUE = 1000
    MIN_GAME_TIME = 1
    MAX_GAME_TIME = 3600  # 1 hour
    MIN_TICK_INTERVAL = 0.01
    MAX_TICK_INTERVAL = 10.0
    MIN_COUNT_OF_OPTIONS = 2
    MAX_COUNT_OF_OPTIONS = 10

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._level_settings: Dict[Level, GameSettings] = dict(self.DEFAULT_LEVEL_SETTINGS)
        self._tick_interval = self.DEFAULT_TICK_INTERVAL
        self._count_of_options = self.DEFAULT_COUNT_OF_OPTIONS

    def get_game_settings(self, level: Level) -> GameSettings:
        """
        Get the game settings for a difficulty level.

        Args:
            level: Difficulty level to look up

        Returns:
            GameSettings configured for the level

        Raises:
            ConfigurationMissingError: If no settings exist for the level
        """
        settings = self._level_settings.get(level)
        if settings is None:
            self.logger.error(f"No game settings configured for level {level}")
            raise ConfigurationMissingError(level)
        return settings

    def get_available_levels(self) -> list:
        """Get levels that currently have settings, in declaration order."""
        return [level for level in Level if level in self._level_settings]

    def set_level_settings(
        self,
        level: Level,
        max_sum_value: int,
        min_count_of_right_answers: int,
        min_percent_of_right_answers: int,
        game_time_in_seconds: int
    ) -> Dict[str, Any]:
        """
        Replace the settings of one level with validation.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        values = {
            'max_sum_value': max_sum_value,
            'min_count_of_right_answers': min_count_of_right_answers,
            'min_percent_of_right_answers': min_percent_of_right_answers,
            'game_time_in_seconds': game_time_in_seconds,
        }

        # Type validation
        for name, value in values.items():
            if not isinstance(value, int) or isinstance(value, bool):
                error_msg = f"{name} must be an integer, got {type(value).__name__}"
                self.logger.error(error_msg)
                return {
                    'success': False,
                    'error': error_msg,
                    'user_message': f"❌ Invalid input: {name} expects a number, got {type(value).__name__}"
                }

        # Range validation
        if not self.MIN_SUM_VALUE <= max_sum_value <= self.MAX_SUM_VALUE:
            error_msg = f"max_sum_value must be between {self.MIN_SUM_VALUE} and {self.MAX_SUM_VALUE}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Maximum sum must be between {self.MIN_SUM_VALUE} and {self.MAX_SUM_VALUE}"
            }

        if min_count_of_right_answers < 0:
            error_msg = "min_count_of_right_answers cannot be negative"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Required right answers cannot be negative"
            }

        if not 0 <= min_percent_of_right_answers <= 100:
            error_msg = "min_percent_of_right_answers must be between 0 and 100"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Required percent must be between 0 and 100"
            }

        if not self.MIN_GAME_TIME <= game_time_in_seconds <= self.MAX_GAME_TIME:
            error_msg = f"game_time_in_seconds must be between {self.MIN_GAME_TIME} and {self.MAX_GAME_TIME}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Game time must be between {self.MIN_GAME_TIME} and {self.MAX_GAME_TIME} seconds"
            }

        self._level_settings[level] = GameSettings(**values)
        self.logger.info(f"Settings for level {level.name} set to {values}")
        return {
            'success': True,
            'message': f"Settings for level {level.name} updated",
            'user_message': f"✅ Level {level.name} updated"
        }

    def remove_level_settings(self, level: Level) -> bool:
        """
        Remove the settings of a level so it can no longer be played.

        Returns:
            True if settings were removed, False if the level had none
        """
        if level not in self._level_settings:
            return False
        del self._level_settings[level]
        self.logger.info(f"Settings for level {level.name} removed")
        return True

    def set_tick_interval(self, seconds: float) -> Dict[str, Any]:
        """
        Set the countdown tick interval in seconds.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            error_msg = f"Tick interval must be a number, got {type(seconds).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(seconds).__name__}"
            }

        if not self.MIN_TICK_INTERVAL <= seconds <= self.MAX_TICK_INTERVAL:
            error_msg = f"Tick interval must be between {self.MIN_TICK_INTERVAL} and {self.MAX_TICK_INTERVAL} seconds"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Tick interval out of range ({self.MIN_TICK_INTERVAL}-{self.MAX_TICK_INTERVAL}s)"
            }

        self._tick_interval = float(seconds)
        self.logger.info(f"Tick interval set to {seconds} seconds")
        return {
            'success': True,
            'message': f"Tick interval set to {seconds} seconds",
            'user_message': f"✅ Timer ticks every {seconds} seconds"
        }

    def get_tick_interval(self) -> float:
        """Get the countdown tick interval in seconds."""
        return self._tick_interval

    def set_count_of_options(self, count: int) -> Dict[str, Any]:
        """
        Set how many answer options each question offers.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(count, bool) or not isinstance(count, int):
            error_msg = f"Count of options must be an integer, got {type(count).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(count).__name__}"
            }

        if not self.MIN_COUNT_OF_OPTIONS <= count <= self.MAX_COUNT_OF_OPTIONS:
            error_msg = f"Count of options must be between {self.MIN_COUNT_OF_OPTIONS} and {self.MAX_COUNT_OF_OPTIONS}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Options must be between {self.MIN_COUNT_OF_OPTIONS} and {self.MAX_COUNT_OF_OPTIONS}"
            }

        self._count_of_options = count
        self.logger.info(f"Count of options set to {count}")
        return {
            'success': True,
            'message': f"Count of options set to {count}",
            'user_message': f"✅ Each question will offer {count} options"
        }

    def get_count_of_options(self) -> int:
        """Get how many answer options each question offers."""
        return self._count_of_options

    def apply_config(self, config: Optional[Dict[str, Any]]) -> list:
        """
        Apply the ``game`` section of a loaded config.json.

        Args:
            config: Parsed configuration dictionary

        Returns:
            List of error messages for entries that were rejected
        """
        errors = []
        game_config = (config or {}).get('game') or {}
        if not isinstance(game_config, dict):
            self.logger.warning("Ignoring game configuration that is not a mapping")
            return ["Game configuration must be a mapping"]

        if 'tick_interval_seconds' in game_config:
            result = self.set_tick_interval(game_config['tick_interval_seconds'])
            if not result['success']:
                errors.append(result['error'])

        if 'count_of_options' in game_config:
            result = self.set_count_of_options(game_config['count_of_options'])
            if not result['success']:
                errors.append(result['error'])

        levels_config = game_config.get('levels') or {}
        if not isinstance(levels_config, dict):
            errors.append("Level configuration must be a mapping")
            levels_config = {}

        for level_name, values in levels_config.items():
            try:
                level = Level.from_name(level_name)
            except ValueError as e:
                self.logger.warning(f"Ignoring settings for unknown level: {e}")
                errors.append(str(e))
                continue

            if values is None:
                self.remove_level_settings(level)
                continue
            if not isinstance(values, dict):
                errors.append(f"{level.name}: settings must be a mapping")
                continue

            # Missing keys keep the current value of the level
            current = self._level_settings.get(level, self.DEFAULT_LEVEL_SETTINGS[level])
            result = self.set_level_settings(
                level,
                max_sum_value=values.get('max_sum_value', current.max_sum_value),
                min_count_of_right_answers=values.get(
                    'min_count_of_right_answers', current.min_count_of_right_answers
                ),
                min_percent_of_right_answers=values.get(
                    'min_percent_of_right_answers', current.min_percent_of_right_answers
                ),
                game_time_in_seconds=values.get('game_time_in_seconds', current.game_time_in_seconds)
            )
            if not result['success']:
                errors.append(f"{level.name}: {result['error']}")

        if errors:
            self.logger.warning(f"Encountered {len(errors)} configuration errors")
        return errors

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._level_settings = dict(self.DEFAULT_LEVEL_SETTINGS)
        self._tick_interval = self.DEFAULT_TICK_INTERVAL
        self._count_of_options = self.DEFAULT_COUNT_OF_OPTIONS
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        if not self._level_settings:
            validation_result["valid"] = False
            validation_result["issues"].append("No levels configured")

        for level, settings in self._level_settings.items():
            if settings.game_time_in_seconds <= 0:
                validation_result["valid"] = False
                validation_result["issues"].append(
                    f"Invalid game time for {level.name}: {settings.game_time_in_seconds}"
                )
            if not 0 <= settings.min_percent_of_right_answers <= 100:
                validation_result["valid"] = False
                validation_result["issues"].append(
                    f"Invalid required percent for {level.name}: {settings.min_percent_of_right_answers}"
                )

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        lines = ["Game Settings:"]
        for level in self.get_available_levels():
            settings = self._level_settings[level]
            lines.append(
                f"• {level.name}: sums up to {settings.max_sum_value}, "
                f"{settings.min_count_of_right_answers} right answers, "
                f"{settings.min_percent_of_right_answers}%, "
                f"{settings.game_time_in_seconds} seconds"
            )
        lines.append(f"• Options per question: {self._count_of_options}")
        return "\n".join(lines)
