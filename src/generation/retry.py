"""Bounded retry for generation calls that fail for transient reasons."""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from src.generation.exceptions import TRANSIENT_STATUSES, GenerationError
from src.generation.protocol import TextGenerator
from src.generation.types import GenerationRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_MARKERS = (
    "connection error",
    "connection reset",
    "econnreset",
    "etimedout",
    "enotfound",
    "timed out",
    "network",
    "rate limit",
    "overloaded",
    "service unavailable",
)


def linear_backoff(attempt: int, base_delay: float) -> float:
    """Delay before the next attempt: ``attempt * base_delay``."""
    return attempt * base_delay


def is_transient_message(text: str) -> bool:
    """True when an error message reads like a network, rate-limit or availability failure."""
    lowered = text.lower()
    return any(marker in lowered for marker in _TRANSIENT_MARKERS)


def is_transient_error(exc: BaseException) -> bool:
    """Classify a failure as network / rate-limit / availability related."""
    if isinstance(exc, GenerationError):
        return exc.transient
    if isinstance(exc, (ConnectionError, TimeoutError, socket.gaierror)):
        return True
    status = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status in TRANSIENT_STATUSES
    return is_transient_message(str(exc))


@dataclass
class RetryPolicy:
    """Retry an async operation while its failures are transient.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay_seconds: Passed to ``backoff`` together with the attempt number.
        backoff: ``(attempt, base_delay) -> seconds`` to wait after a failed attempt.
        is_transient: Predicate deciding whether a failure is worth retrying.
        sleep: Awaitable sleep, replaced in tests.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 3.0
    backoff: Callable[[int, float], float] = linear_backoff
    is_transient: Callable[[BaseException], bool] = is_transient_error
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")

    async def call(self, operation: Callable[[], Awaitable[T]], label: str = "call") -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await operation()
            except Exception as exc:
                if not self.is_transient(exc):
                    logger.error(
                        "%s attempt %d/%d failed permanently: %s",
                        label, attempt, self.max_attempts, exc,
                    )
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        "%s attempt %d/%d failed (%s); no attempts left",
                        label, attempt, self.max_attempts, exc,
                    )
                    raise
                delay = self.backoff(attempt, self.base_delay_seconds)
                logger.warning(
                    "%s attempt %d/%d failed (%s). Retrying in %.1fs",
                    label, attempt, self.max_attempts, exc, delay,
                )
                await self.sleep(delay)
            else:
                logger.info("%s succeeded on attempt %d/%d", label, attempt, self.max_attempts)
                return result


class RetryingGenerator:
    """TextGenerator that sends each request through a RetryPolicy."""

    def __init__(self, inner: TextGenerator, policy: RetryPolicy | None = None) -> None:
        self._inner = inner
        self._policy = policy or RetryPolicy()

    @property
    def name(self) -> str:
        return self._inner.name

    async def generate(self, request: GenerationRequest) -> str:
        return await self._policy.call(
            lambda: self._inner.generate(request), label=request.label,
        )
