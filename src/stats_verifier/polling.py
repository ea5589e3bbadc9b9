"""
Fixed-interval polling.

A PollRunner re-evaluates a zero-argument check until it returns True or the
strategy's timeout elapses. A check that raises is treated as "not yet
satisfied": the error is logged and the check is retried. This is the only
retry policy in the harness.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
    wait_random,
)

from common.durations import format_duration
from common.logging import StructuredLogger, get_logger

from .exceptions import PollTimeoutError


@dataclass(frozen=True)
class PollStrategy:
    """Interval, overall timeout and optional jitter (seconds) for a poll loop."""

    interval: float
    timeout: float
    jitter: float = 0.0

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.jitter < 0:
            raise ValueError(f"jitter must not be negative, got {self.jitter}")

    def wait_policy(self):
        if self.jitter:
            return wait_fixed(self.interval) + wait_random(0, self.jitter)
        return wait_fixed(self.interval)

    def stop_policy(self):
        return stop_after_delay(self.timeout)


class PollRunner:
    """Runs a boolean check under a PollStrategy."""

    def __init__(
        self,
        strategy: PollStrategy,
        structured_logger: Optional[StructuredLogger] = None,
        fatal_exceptions: Tuple[Type[BaseException], ...] = (),
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            strategy: Interval and timeout to poll with
            structured_logger: Logger for failed attempts
            fatal_exceptions: Exception types that abort polling immediately
            sleep: Sleep function used between attempts
        """
        self.strategy = strategy
        self.slog = structured_logger or get_logger()
        self.fatal_exceptions = tuple(fatal_exceptions)
        self._sleep = sleep

    def _is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, Exception) and not isinstance(error, self.fatal_exceptions)

    def _before_sleep(self, name: str, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None and outcome.failed else None
        next_wait = retry_state.next_action.sleep if retry_state.next_action else None
        self.slog.log_poll_attempt(name, retry_state.attempt_number, error, next_wait)

    def run(self, check: Callable[[], bool], name: str = "condition") -> int:
        """
        Poll check until it returns True.

        Args:
            check: Zero-argument callable returning True once satisfied
            name: Label used in log entries and the timeout message

        Returns:
            The number of times check was invoked

        Raises:
            PollTimeoutError: If check is not satisfied before the timeout
        """
        attempts = 0

        def attempt() -> bool:
            nonlocal attempts
            attempts += 1
            return bool(check())

        retrying = Retrying(
            wait=self.strategy.wait_policy(),
            stop=self.strategy.stop_policy(),
            retry=(
                retry_if_result(lambda satisfied: not satisfied)
                | retry_if_exception(self._is_retryable)
            ),
            before_sleep=lambda state: self._before_sleep(name, state),
            sleep=self._sleep,
        )

        try:
            retrying(attempt)
        except RetryError as e:
            last_attempt = e.last_attempt
            last_error = last_attempt.exception() if last_attempt.failed else None
            message = (
                f"timed out waiting for {name} after "
                f"{format_duration(self.strategy.timeout)} ({attempts} attempts)"
            )
            if last_error is not None:
                message += f": {last_error}"
            raise PollTimeoutError(
                message,
                attempts=attempts,
                timeout=self.strategy.timeout,
                last_error=last_error,
            ) from last_error

        return attempts
