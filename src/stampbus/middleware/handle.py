"""HandleMessageMiddleware: invoke the registered handlers in order."""

from __future__ import annotations

import logging
from inspect import isawaitable
from typing import TYPE_CHECKING

from ..primitives.exceptions import HandlerError, NoHandlerError, StampBusError
from ..stamps import HandledStamp, ReceivedStamp

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..envelope import Envelope
    from ..locators import HandlersLocator

logger = logging.getLogger("stampbus.middleware")


class HandleMessageMiddleware:
    """Runs every handler for the message, one after another.

    The first failing handler aborts the rest. Errors already in the
    stampbus hierarchy propagate unchanged; anything else is wrapped in
    :class:`HandlerError` with the original as ``__cause__``.
    """

    def __init__(
        self,
        handlers_locator: HandlersLocator,
        *,
        allow_no_handlers: bool = False,
    ) -> None:
        self._handlers_locator = handlers_locator
        self._allow_no_handlers = allow_no_handlers

    async def __call__(
        self,
        envelope: Envelope,
        next_handler: Callable[[Envelope], Awaitable[Envelope]],
    ) -> Envelope:
        received = envelope.last_stamp_of(ReceivedStamp)
        handlers = self._handlers_locator.handlers_for(
            envelope.message_type,
            received.transport_name if received is not None else None,
        )
        if not handlers:
            if self._allow_no_handlers:
                return await next_handler(envelope)
            raise NoHandlerError(envelope.message_type)

        message = envelope.message
        for descriptor in handlers:
            logger.debug(
                "Calling handler %s for %s", descriptor.name, envelope.message_name
            )
            try:
                result = descriptor.handler(message)
                if isawaitable(result):
                    result = await result
            except StampBusError as e:
                if isinstance(e, HandlerError) and e.handler_name is None:
                    e.handler_name = descriptor.name
                raise
            except Exception as e:
                raise HandlerError(
                    f"Handler {descriptor.name} failed for "
                    f"{envelope.message_name}: {e}",
                    handler_name=descriptor.name,
                ) from e
            envelope = envelope.with_stamp(
                HandledStamp(handler_name=descriptor.name, result=result)
            )
        return await next_handler(envelope)
