"""
Countdown timer for Composition game sessions.
Ticks once per interval and fires an expiry callback when time runs out.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

# Set up logger for timer operations
logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_start(session_id: str, duration: int) -> None:
        """Log timer countdown start."""
        logger.info(
            f"Timer lifecycle: COUNTDOWN_START - Session {session_id}, Duration {duration}s",
            extra={
                'event_type': 'timer_countdown_start',
                'session_id': session_id,
                'duration': duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_update(session_id: str, remaining_time: int, total_duration: int) -> None:
        """Log timer update events (throttled to avoid spam)."""
        if remaining_time % 10 == 0 or remaining_time <= 5:
            progress_percent = ((total_duration - remaining_time) / total_duration) * 100
            logger.debug(
                f"Timer lifecycle: UPDATE - Session {session_id}, Remaining {remaining_time}s ({progress_percent:.1f}% complete)",
                extra={
                    'event_type': 'timer_update',
                    'session_id': session_id,
                    'remaining_time': remaining_time,
                    'total_duration': total_duration,
                    'progress_percent': progress_percent,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_completion(session_id: str, completion_type: str, total_duration: int) -> None:
        """Log timer completion (natural expiry or cancellation)."""
        logger.info(
            f"Timer lifecycle: COMPLETED - Session {session_id}, Type {completion_type}, Duration {total_duration}s",
            extra={
                'event_type': 'timer_completed',
                'session_id': session_id,
                'completion_type': completion_type,
                'total_duration': total_duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(session_id: str, from_state: str, to_state: str, reason: str = None) -> None:
        """Log timer state transitions."""
        logger.info(
            f"Timer lifecycle: STATE_TRANSITION - Session {session_id}, {from_state} -> {to_state}" +
            (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'timer_state_transition',
                'session_id': session_id,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(session_id: str, error_type: str, error_message: str, operation: str) -> None:
        """Log timer-related errors with context."""
        logger.error(
            f"Timer lifecycle: ERROR - Session {session_id}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'session_id': session_id,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class GameTimer:
    """Cancellable countdown with tick and expiry callbacks."""

    def __init__(self, session_id: str = None, interval: float = 1.0):
        """
        Initialize the timer.

        Args:
            session_id: Identifier used in lifecycle logs
            interval: Seconds between ticks
        """
        self._task: Optional[asyncio.Task] = None
        self._remaining_time = 0
        self._total_duration = 0
        self._is_cancelled = False
        self._session_id = session_id
        self._interval = interval

    def start(
        self,
        duration: int,
        tick_callback: Callable[[int], Awaitable[Any]],
        expire_callback: Callable[[], Awaitable[Any]]
    ) -> asyncio.Task:
        """
        Schedule the countdown as a background task.

        Raises:
            RuntimeError: If the timer was already started or cancelled
        """
        if self._task is not None or self._is_cancelled:
            raise RuntimeError(f"Timer for session {self._session_id} cannot be started twice")

        self._task = asyncio.create_task(
            self.run_countdown(duration, tick_callback, expire_callback)
        )
        return self._task

    async def run_countdown(
        self,
        duration: int,
        tick_callback: Callable[[int], Awaitable[Any]],
        expire_callback: Callable[[], Awaitable[Any]]
    ) -> None:
        """
        Count down from ``duration``, ticking once per interval.

        Args:
            duration: Countdown length in ticks (seconds at the default interval)
            tick_callback: Called with the remaining time before each interval
            expire_callback: Called once when the remaining time reaches zero
        """
        self._remaining_time = duration
        self._total_duration = duration

        TimerLifecycleLogger.log_timer_start(self._session_id, duration)

        loop = asyncio.get_running_loop()
        # Tick n is due at start + n * interval however long the callbacks take
        deadline = loop.time()

        try:
            while self._remaining_time > 0 and not self._is_cancelled:
                TimerLifecycleLogger.log_timer_update(
                    self._session_id,
                    self._remaining_time,
                    self._total_duration
                )
                await tick_callback(self._remaining_time)
                deadline += self._interval
                await asyncio.sleep(max(0.0, deadline - loop.time()))
                if self._is_cancelled:
                    break
                self._remaining_time -= 1

            if self._is_cancelled:
                TimerLifecycleLogger.log_timer_completion(
                    self._session_id,
                    "cancelled",
                    self._total_duration
                )
                return

            TimerLifecycleLogger.log_timer_completion(
                self._session_id,
                "natural_expiry",
                self._total_duration
            )
            await expire_callback()

        except asyncio.CancelledError:
            self._is_cancelled = True
            TimerLifecycleLogger.log_timer_completion(
                self._session_id,
                "asyncio_cancelled",
                self._total_duration
            )
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(
                self._session_id,
                "countdown_execution_error",
                str(e),
                "run_countdown"
            )
            raise

    def cancel(self) -> None:
        """Cancel the countdown; no callback fires after this returns."""
        if self._is_cancelled:
            return

        self._is_cancelled = True
        # A callback may cancel its own timer; the loop exits on the flag
        if self._task and not self._task.done() and self._task is not asyncio.current_task():
            logger.debug(f"Cancelling timer task for session {self._session_id}")
            self._task.cancel()
            reason = "task cancelled"
        else:
            reason = "no pending task"

        TimerLifecycleLogger.log_timer_state_transition(
            self._session_id,
            "running",
            "cancelled",
            reason
        )

    @property
    def is_cancelled(self) -> bool:
        """Check if timer is cancelled."""
        return self._is_cancelled

    @property
    def is_running(self) -> bool:
        """Check if the countdown task is still pending."""
        return self._task is not None and not self._task.done()

    @property
    def remaining_time(self) -> int:
        """Get remaining time in ticks."""
        return self._remaining_time

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task
