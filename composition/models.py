"""
Core data models for the Composition quiz game.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class Level(Enum):
    """Difficulty levels; used only as a settings lookup key."""
    TEST = "test"
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

    @classmethod
    def from_name(cls, name: str) -> "Level":
        """Parse a level from its name, case-insensitive."""
        normalized = str(name).strip().lower()
        for level in cls:
            if level.value == normalized:
                return level
        raise ValueError(f"Unknown level: {name}")


class SessionState(Enum):
    """Lifecycle states of a game session."""
    CREATED = "created"
    RUNNING = "running"
    FINISHED = "finished"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class GameSettings:
    """Parameters of a game at one difficulty level."""
    max_sum_value: int
    min_count_of_right_answers: int
    min_percent_of_right_answers: int
    game_time_in_seconds: int


@dataclass(frozen=True)
class Question:
    """A sum with one visible term; the player picks the missing one."""
    sum: int
    visible_value: int
    options: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def right_answer(self) -> int:
        return self.sum - self.visible_value


@dataclass(frozen=True)
class GameProgress:
    """Snapshot of the progress published after every answer."""
    count_of_right_answers: int
    count_of_questions: int
    percent_of_right_answers: int
    enough_count: bool
    enough_percent: bool
    min_count_of_right_answers: int
    min_percent_of_right_answers: int


@dataclass(frozen=True)
class GameResult:
    """Outcome of a finished session."""
    winner: bool
    count_of_right_answers: int
    count_of_questions: int
    game_settings: GameSettings
