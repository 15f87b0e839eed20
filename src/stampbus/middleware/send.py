"""SendMessageMiddleware: hand envelopes to their outbound transports."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..stamps import ReceivedStamp, SentStamp

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..envelope import Envelope
    from ..locators import SendersLocator
    from ..transports.registry import TransportRegistry

logger = logging.getLogger("stampbus.middleware")


class SendMessageMiddleware:
    """Sends an envelope to every transport the senders locator names.

    When at least one transport accepted the envelope the chain stops here,
    so a routed message is never also handled locally. Envelopes carrying a
    ``ReceivedStamp`` are being consumed and pass straight through.
    """

    def __init__(
        self,
        senders_locator: SendersLocator,
        transports: TransportRegistry,
    ) -> None:
        self._senders_locator = senders_locator
        self._transports = transports

    async def __call__(
        self,
        envelope: Envelope,
        next_handler: Callable[[Envelope], Awaitable[Envelope]],
    ) -> Envelope:
        if envelope.last_stamp_of(ReceivedStamp) is not None:
            return await next_handler(envelope)

        names = self._senders_locator.senders_for(envelope.message_type)
        if not names:
            return await next_handler(envelope)

        for name in names:
            sender = self._transports.get(name)
            logger.debug("Sending %s to transport %s", envelope.message_name, name)
            await sender.send(envelope)
            envelope = envelope.with_stamp(SentStamp(transport_name=name))
        return envelope
