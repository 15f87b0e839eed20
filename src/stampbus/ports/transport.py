"""Transport ports: sender and receiver halves of a broker connection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..envelope import Envelope


@runtime_checkable
class ISender(Protocol):
    """
    Outbound half of a transport.

    Infrastructure adapters (AMQP, in-memory, …) implement it.
    """

    async def send(self, envelope: Envelope) -> Envelope:
        """
        Hand *envelope* to the broker for later delivery.

        A ``DelayStamp`` on the envelope asks the broker to withhold delivery.

        Returns:
            The envelope as sent.

        Raises:
            TransportError: On connection or protocol failure.
            SerializationError: If the envelope cannot be encoded.
        """
        ...


@runtime_checkable
class IReceiver(Protocol):
    """
    Inbound half of a transport.

    ``get`` never blocks; polling cadence belongs to the worker.
    """

    async def get(self) -> Envelope | None:
        """
        Return the next available envelope, or ``None`` if the queue is empty.

        The envelope carries a ``TransportMessageIdStamp`` naming the delivery.
        """
        ...

    async def ack(self, envelope: Envelope) -> None:
        """Confirm processing; the broker must not redeliver."""
        ...

    async def reject(self, envelope: Envelope, requeue: bool = False) -> None:
        """Signal failure; ``requeue=True`` makes the delivery available again."""
        ...


@runtime_checkable
class ITransport(ISender, IReceiver, Protocol):
    """A full transport: both halves plus lifecycle."""

    #: ``False`` when ``DelayStamp`` is ignored; the worker then waits itself.
    supports_delay: bool

    async def close(self) -> None:
        """Release the underlying connection."""
        ...
