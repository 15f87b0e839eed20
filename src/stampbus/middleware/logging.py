"""LoggingMiddleware: logs dispatch details."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from ..stamps import ReceivedStamp

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..envelope import Envelope

logger = logging.getLogger("stampbus.middleware")


class LoggingMiddleware:
    """Logs dispatch execution with message name, origin and duration."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    async def __call__(
        self,
        envelope: Envelope,
        next_handler: Callable[[Envelope], Awaitable[Envelope]],
    ) -> Envelope:
        """Log the dispatch."""
        msg_name = envelope.message_name
        received = envelope.last_stamp_of(ReceivedStamp)
        origin = received.transport_name if received is not None else "local"
        self._log.info("Dispatching %s (from=%s)", msg_name, origin)
        start = time.perf_counter()
        try:
            result = await next_handler(envelope)
            elapsed = (time.perf_counter() - start) * 1000
            self._log.info("%s dispatched in %.2fms", msg_name, elapsed)
            return result
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            self._log.exception("%s failed after %.2fms", msg_name, elapsed)
            raise
