"""RetryStrategy: bounded retries with multiplier backoff and optional jitter."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from .primitives.exceptions import is_retryable

if TYPE_CHECKING:
    from .envelope import Envelope


class RetryStrategy:
    """Stateless per-transport retry policy.

    The retry count is read from the envelope's ``RetryCountStamp``; the
    strategy itself keeps no state and may be shared between workers.
    """

    def __init__(
        self,
        *,
        max_retries: int = 3,
        delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 0.0,
        jitter: bool = False,
    ) -> None:
        """Configure retry behavior.

        Args:
            max_retries: Number of retries after the first failure.
            delay: Delay in seconds before the first retry.
            multiplier: Growth factor applied per retry.
            max_delay: Cap on delay in seconds; ``0`` means no cap.
            jitter: If True, multiply each delay by a random factor in [0.5, 1.5].
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if delay < 0 or max_delay < 0:
            raise ValueError("delay and max_delay must be >= 0")
        if multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        self.max_retries = max_retries
        self.delay = delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter

    def should_retry(self, retry_count: int) -> bool:
        """Return True while *retry_count* is below ``max_retries``."""
        return 0 <= retry_count < self.max_retries

    def delay_for(self, retry_count: int) -> float:
        """Return the delay in seconds before retry number ``retry_count + 1``.

        ``delay * multiplier ** retry_count``, capped by ``max_delay`` when set.
        """
        if retry_count < 0:
            return 0.0
        wait = self.delay * (self.multiplier**retry_count)
        if self.max_delay > 0:
            wait = min(wait, self.max_delay)
        if self.jitter:
            wait = wait * (0.5 + random.random())  # noqa: S311
        return float(max(0.0, wait))

    def is_retryable(self, envelope: Envelope, error: BaseException) -> bool:
        """Return True if *envelope* failing with *error* gets another attempt."""
        return is_retryable(error) and self.should_retry(envelope.retry_count)

    def __repr__(self) -> str:
        return (
            f"RetryStrategy(max_retries={self.max_retries}, delay={self.delay}, "
            f"multiplier={self.multiplier}, max_delay={self.max_delay})"
        )
