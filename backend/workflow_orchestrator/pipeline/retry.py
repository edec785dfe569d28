"""Backoff strategies used between step retries."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from workflow_orchestrator.core.constants import RetryStrategy

Sleeper = Callable[[float], Awaitable[None]]


class BackoffStrategy(ABC):
    """Maps a 0-based retry attempt index to a wait in seconds."""

    def __init__(self, sleep: Sleeper | None = None) -> None:
        self._sleep = sleep or asyncio.sleep

    @abstractmethod
    def delay(self, attempt: int) -> float:
        """Seconds to wait before retry number `attempt` (0-based)."""
        ...

    async def wait(self, attempt: int) -> None:
        """Suspend the current step for delay(attempt) seconds."""
        await self._sleep(self.delay(attempt))


class ExponentialBackoff(BackoffStrategy):
    """1s, 2s, 4s, 8s, ..."""

    def delay(self, attempt: int) -> float:
        return float(2 ** attempt)


class LinearBackoff(BackoffStrategy):
    """1s, 2s, 3s, 4s, ..."""

    def delay(self, attempt: int) -> float:
        return float(attempt + 1)


class FixedBackoff(BackoffStrategy):
    """Always 2s."""

    seconds = 2.0

    def delay(self, attempt: int) -> float:
        return self.seconds


_STRATEGIES: dict[RetryStrategy, type[BackoffStrategy]] = {
    RetryStrategy.EXPONENTIAL: ExponentialBackoff,
    RetryStrategy.LINEAR: LinearBackoff,
    RetryStrategy.FIXED: FixedBackoff,
}


def get_backoff(strategy: RetryStrategy | str, sleep: Sleeper | None = None) -> BackoffStrategy:
    """Build the backoff for a strategy name.  Unknown names fall back to exponential."""
    try:
        key = RetryStrategy(strategy)
    except ValueError:
        key = RetryStrategy.EXPONENTIAL
    return _STRATEGIES[key](sleep=sleep)
