"""
Game session controller for the Composition quiz game.
Owns the state of one play-through and publishes it to display listeners.
"""
import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from . import strings
from .exceptions import InvalidSessionStateError
from .game_timer import GameTimer
from .models import GameProgress, GameResult, GameSettings, Level, Question, SessionState

SECONDS_IN_MINUTE = 60

EVENT_FORMATTED_TIME = "formatted_time"
EVENT_PROGRESS = "progress"
EVENT_QUESTION = "question"
EVENT_MIN_PERCENT = "min_percent"
EVENT_GAME_RESULT = "game_result"
EVENTS = (
    EVENT_FORMATTED_TIME,
    EVENT_PROGRESS,
    EVENT_QUESTION,
    EVENT_MIN_PERCENT,
    EVENT_GAME_RESULT,
)


def format_time(seconds: int) -> str:
    """Format remaining seconds as MM:SS."""
    minutes = seconds // SECONDS_IN_MINUTE
    left_seconds = seconds % SECONDS_IN_MINUTE
    return "%02d:%02d" % (minutes, left_seconds)


def calculate_percent(count_of_right_answers: int, count_of_questions: int) -> int:
    """Percent of right answers, truncated; 0 when nothing was answered."""
    if count_of_questions == 0:
        return 0
    return (count_of_right_answers * 100) // count_of_questions


class GameController:
    """
    Single authority for an in-progress game session.

    The controller is created for one level and moves through
    CREATED -> RUNNING -> FINISHED; it can be disposed from any state.
    Answer submissions, timer ticks and expiry are serialized by a lock.
    Display layers subscribe with ``add_listener`` and receive every
    published value; listeners may be plain functions or coroutines.
    """

    def __init__(
        self,
        repository,
        level: Level,
        tick_interval: float = 1.0,
        session_id: Optional[str] = None
    ):
        """
        Initialize the controller and fetch the level settings.

        Args:
            repository: Provides ``fetch_settings`` and ``generate_question``
            level: Difficulty level of the session
            tick_interval: Seconds between countdown ticks
            session_id: Identifier used in logs

        Raises:
            ConfigurationMissingError: If no settings exist for the level
        """
        self.logger = logging.getLogger(__name__)
        self.repository = repository
        self.level = level
        self.session_id = session_id or f"{level.value}-{id(self):x}"

        self._game_settings: GameSettings = repository.fetch_settings(level)

        self._state = SessionState.CREATED
        self._lock = asyncio.Lock()
        self._timer = GameTimer(self.session_id, tick_interval)
        self._listeners: Dict[str, List[Callable[[Any], Any]]] = {event: [] for event in EVENTS}

        self._count_of_right_answers = 0
        self._count_of_questions = 0
        self._question: Optional[Question] = None
        self._progress: Optional[GameProgress] = None
        self._formatted_time: Optional[str] = None
        self._min_percent: Optional[int] = None
        self._game_result: Optional[GameResult] = None

        self.logger.info(
            f"GameController created for session {self.session_id}: level={level.name}",
            extra={
                'event_type': 'session_created',
                'session_id': self.session_id,
                'level': level.name,
                'timestamp': time.time()
            }
        )

    def add_listener(self, event: str, callback: Callable[[Any], Any]) -> None:
        """
        Subscribe to a published field.

        Raises:
            ValueError: If the event name is unknown
        """
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Callable[[Any], Any]) -> bool:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)
            return True
        return False

    async def start(self) -> None:
        """
        Start the countdown, generate the first question and publish initial progress.

        Raises:
            InvalidSessionStateError: If the session was already started or disposed
        """
        if self._state is not SessionState.CREATED:
            raise InvalidSessionStateError(
                f"Cannot start session {self.session_id} in state {self._state.value}"
            )

        async with self._lock:
            self._state = SessionState.RUNNING
            self._min_percent = self._game_settings.min_percent_of_right_answers
            await self._publish(EVENT_MIN_PERCENT, self._min_percent)
            if self._state is not SessionState.RUNNING:
                return

            self._timer.start(
                self._game_settings.game_time_in_seconds,
                self._on_tick,
                self._on_expire
            )
            await self._generate_question()
            await self._update_progress()

        self.logger.info(
            f"Session {self.session_id} started: {self._game_settings.game_time_in_seconds}s",
            extra={
                'event_type': 'session_started',
                'session_id': self.session_id,
                'game_settings': self._game_settings,
                'timestamp': time.time()
            }
        )

    async def choose_answer(self, number: int) -> bool:
        """
        Score an answer to the current question and move to a new one.

        Returns:
            True if the answer was applied, False if the session is not running
        """
        return await self.submit_answer(number) is not None

    async def submit_answer(self, number: int) -> Optional[Question]:
        """
        Score an answer like ``choose_answer``.

        Returns:
            The question the answer was scored against, or None if the
            session is not running
        """
        async with self._lock:
            if self._state is not SessionState.RUNNING:
                self.logger.warning(
                    f"Ignoring answer {number} for session {self.session_id} in state {self._state.value}"
                )
                return None

            question = self._question
            self._check_answer(number)
            await self._update_progress()
            await self._generate_question()
            return question

    async def dispose(self) -> None:
        """Cancel the timer and release the session; safe to call at any time."""
        if self._state is SessionState.DISPOSED:
            return

        previous_state = self._state
        self._state = SessionState.DISPOSED
        self._timer.cancel()
        for listeners in self._listeners.values():
            listeners.clear()
        self._question = None

        self.logger.info(
            f"Disposed session {self.session_id} (was {previous_state.value})",
            extra={
                'event_type': 'session_disposed',
                'session_id': self.session_id,
                'previous_state': previous_state.value,
                'timestamp': time.time()
            }
        )

    def _check_answer(self, number: int) -> None:
        if self._question is not None and number == self._question.right_answer:
            self._count_of_right_answers += 1
        self._count_of_questions += 1

    async def _update_progress(self) -> None:
        settings = self._game_settings
        percent = calculate_percent(self._count_of_right_answers, self._count_of_questions)
        self._progress = GameProgress(
            count_of_right_answers=self._count_of_right_answers,
            count_of_questions=self._count_of_questions,
            percent_of_right_answers=percent,
            enough_count=self._count_of_right_answers >= settings.min_count_of_right_answers,
            enough_percent=percent >= settings.min_percent_of_right_answers,
            min_count_of_right_answers=settings.min_count_of_right_answers,
            min_percent_of_right_answers=settings.min_percent_of_right_answers
        )
        await self._publish(EVENT_PROGRESS, self._progress)

    async def _generate_question(self) -> None:
        if self._state is not SessionState.RUNNING:
            return
        self._question = self.repository.generate_question(self._game_settings.max_sum_value)
        await self._publish(EVENT_QUESTION, self._question)

    async def _on_tick(self, remaining: int) -> None:
        async with self._lock:
            if self._state is not SessionState.RUNNING:
                return
            self._formatted_time = format_time(remaining)
            await self._publish(EVENT_FORMATTED_TIME, self._formatted_time)

    async def _on_expire(self) -> None:
        async with self._lock:
            if self._state is not SessionState.RUNNING:
                return
            self._formatted_time = format_time(0)
            await self._publish(EVENT_FORMATTED_TIME, self._formatted_time)
            if self._state is not SessionState.RUNNING:
                return
            await self._finish_game()

    async def _finish_game(self) -> None:
        # Winner comes from the last published thresholds, not the raw counters
        progress = self._progress
        winner = bool(progress and progress.enough_count and progress.enough_percent)
        self._game_result = GameResult(
            winner=winner,
            count_of_right_answers=self._count_of_right_answers,
            count_of_questions=self._count_of_questions,
            game_settings=self._game_settings
        )
        self._state = SessionState.FINISHED

        self.logger.info(
            f"Session {self.session_id} finished: winner={winner}, "
            f"right={self._count_of_right_answers}/{self._count_of_questions}",
            extra={
                'event_type': 'session_finished',
                'session_id': self.session_id,
                'winner': winner,
                'count_of_right_answers': self._count_of_right_answers,
                'count_of_questions': self._count_of_questions,
                'timestamp': time.time()
            }
        )
        await self._publish(EVENT_GAME_RESULT, self._game_result)

    async def _publish(self, event: str, value: Any) -> None:
        for callback in list(self._listeners[event]):
            if self._state is SessionState.DISPOSED:
                return
            try:
                result = callback(value)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # Listener errors stay out of the timer task and the answer path
                self.logger.error(
                    f"Listener for {event} failed in session {self.session_id}: {e}",
                    exc_info=True,
                    extra={
                        'event_type': 'listener_error',
                        'session_id': self.session_id,
                        'event': event,
                        'timestamp': time.time()
                    }
                )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def game_settings(self) -> GameSettings:
        return self._game_settings

    @property
    def question(self) -> Optional[Question]:
        return self._question

    @property
    def progress(self) -> Optional[GameProgress]:
        return self._progress

    @property
    def progress_text(self) -> str:
        """Right answers against the level minimum, formatted for display."""
        return strings.PROGRESS_ANSWERS.format(
            self._count_of_right_answers,
            self._game_settings.min_count_of_right_answers
        )

    @property
    def formatted_time(self) -> Optional[str]:
        return self._formatted_time

    @property
    def min_percent(self) -> Optional[int]:
        return self._min_percent

    @property
    def count_of_right_answers(self) -> int:
        return self._count_of_right_answers

    @property
    def count_of_questions(self) -> int:
        return self._count_of_questions

    @property
    def game_result(self) -> GameResult:
        """
        The result of a finished session.

        Raises:
            InvalidSessionStateError: If the session has not finished yet
        """
        if self._game_result is None:
            raise InvalidSessionStateError(
                f"Session {self.session_id} has no result in state {self._state.value}"
            )
        return self._game_result

    def get_session_progress(self) -> Dict[str, Any]:
        """
        Get a snapshot of everything the session has published.

        Returns:
            Dictionary with state, counters, time and current question
        """
        return {
            'session_id': self.session_id,
            'level': self.level.name,
            'state': self._state.value,
            'count_of_right_answers': self._count_of_right_answers,
            'count_of_questions': self._count_of_questions,
            'percent_of_right_answers': self._progress.percent_of_right_answers if self._progress else 0,
            'enough_count': self._progress.enough_count if self._progress else False,
            'enough_percent': self._progress.enough_percent if self._progress else False,
            'formatted_time': self._formatted_time,
            'question': self._question,
            'winner': self._game_result.winner if self._game_result else None,
        }
