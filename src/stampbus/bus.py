"""MessageBus: dispatch entry point driving envelopes through middleware."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .envelope import Envelope
from .middleware.pipeline import build_pipeline, end_of_chain

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .ports.middleware import IMiddleware
    from .stamps import Stamp

logger = logging.getLogger("stampbus.bus")


class MessageBus:
    """Wraps messages in envelopes and threads them through the middleware.

    The stage list is fixed at construction. A typical producer/consumer bus
    is ``[LoggingMiddleware(), SendMessageMiddleware(...),
    HandleMessageMiddleware(...)]``; see :func:`stampbus.wiring.build_runtime`.

    Usage::

        bus = MessageBus([send_middleware, handle_middleware])
        envelope = await bus.dispatch(Hello(name="world"))
        envelope.all_stamps_of(SentStamp)
    """

    def __init__(self, middlewares: Iterable[IMiddleware] = ()) -> None:
        self._middlewares: tuple[IMiddleware, ...] = tuple(middlewares)
        self._pipeline = build_pipeline(list(self._middlewares), end_of_chain)

    @property
    def middlewares(self) -> tuple[IMiddleware, ...]:
        return self._middlewares

    async def dispatch(
        self,
        message: Any,
        stamps: Iterable[Stamp] = (),
    ) -> Envelope:
        """Dispatch a message or envelope; returns the envelope as it left.

        Failures from any stage propagate unchanged to the caller.
        """
        envelope = Envelope.wrap(message, tuple(stamps))
        logger.debug(
            "Dispatching %s with %d stamp(s)",
            envelope.message_name,
            len(envelope.stamps),
        )
        return await self._pipeline(envelope)
