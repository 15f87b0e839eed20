"""InMemoryTransport: ITransport for tests and single-process setups."""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

from ..primitives.exceptions import ConfigurationError, TransportError
from ..stamps import NON_SENDABLE_STAMPS, DelayStamp, TransportMessageIdStamp

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..envelope import Envelope
    from ..serialization import EnvelopeSerializer

logger = logging.getLogger("stampbus.transports")


@dataclass
class _Delivery:
    message_id: str
    envelope: Envelope
    available_at: float


class InMemoryTransport:
    """In-memory FIFO transport with delay support and assertion helpers.

    With ``serialize=True`` every sent envelope makes a round trip through
    the serializer, which surfaces encoding problems the way a real broker
    would. ``sent``, ``acknowledged`` and ``rejected`` record traffic for
    test assertions.
    """

    supports_delay = True

    def __init__(
        self,
        name: str = "memory",
        *,
        serializer: EnvelopeSerializer | None = None,
        serialize: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if serialize and serializer is None:
            raise ConfigurationError("serialize=True requires a serializer")
        self.name = name
        self._serializer = serializer
        self._serialize = serialize
        self._clock = clock
        self._ids = itertools.count(1)
        self._queue: list[_Delivery] = []
        self._in_flight: dict[str, _Delivery] = {}
        self.sent: list[Envelope] = []
        self.acknowledged: list[Envelope] = []
        self.rejected: list[tuple[Envelope, bool]] = []

    @classmethod
    def from_dsn(
        cls,
        name: str,
        dsn: str,
        serializer: EnvelopeSerializer | None = None,
    ) -> InMemoryTransport:
        """Build from ``memory://[queue][?serialize=true]``."""
        query = parse_qs(urlsplit(dsn).query)
        serialize = query.get("serialize", ["false"])[0].lower() in ("1", "true")
        return cls(name, serializer=serializer, serialize=serialize)

    # ── Sender ───────────────────────────────────────────────────

    async def send(self, envelope: Envelope) -> Envelope:
        """Queue *envelope*; a ``DelayStamp`` hides it until the delay passes."""
        stored = envelope.without_stamps_of(*NON_SENDABLE_STAMPS)
        if self._serialize and self._serializer is not None:
            stored = self._serializer.decode(self._serializer.encode(stored))

        delay = stored.last_stamp_of(DelayStamp)
        available_at = self._clock() + (delay.delay if delay is not None else 0.0)
        self._queue.append(
            _Delivery(str(next(self._ids)), stored, available_at)
        )
        self.sent.append(stored)
        return stored

    # ── Receiver ─────────────────────────────────────────────────

    async def get(self) -> Envelope | None:
        now = self._clock()
        for index, delivery in enumerate(self._queue):
            if delivery.available_at <= now:
                del self._queue[index]
                self._in_flight[delivery.message_id] = delivery
                return delivery.envelope.with_stamp(
                    TransportMessageIdStamp(
                        transport_name=self.name, message_id=delivery.message_id
                    )
                )
        return None

    async def ack(self, envelope: Envelope) -> None:
        delivery = self._take(envelope)
        self.acknowledged.append(delivery.envelope)

    async def reject(self, envelope: Envelope, requeue: bool = False) -> None:
        delivery = self._take(envelope)
        self.rejected.append((delivery.envelope, requeue))
        if requeue:
            delivery.available_at = self._clock()
            self._queue.insert(0, delivery)

    async def close(self) -> None:
        """Nothing to release."""

    # ── Helpers ──────────────────────────────────────────────────

    def _take(self, envelope: Envelope) -> _Delivery:
        stamp = envelope.last_stamp_of(TransportMessageIdStamp)
        if stamp is None or stamp.transport_name != self.name:
            raise TransportError(
                f"Envelope was not received from transport '{self.name}'"
            )
        delivery = self._in_flight.pop(stamp.message_id, None)
        if delivery is None:
            raise TransportError(
                f"Delivery {stamp.message_id} on '{self.name}' is not in flight"
            )
        return delivery

    @property
    def pending(self) -> int:
        """Number of queued deliveries, delayed ones included."""
        return len(self._queue)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def reset(self) -> None:
        """Drop queued deliveries and recorded traffic (for test teardown)."""
        self._queue.clear()
        self._in_flight.clear()
        self.sent.clear()
        self.acknowledged.clear()
        self.rejected.clear()
