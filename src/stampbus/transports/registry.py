"""TransportRegistry and DSN-based transport factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from ..primitives.exceptions import ConfigurationError, UnknownTransportError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..ports.transport import ITransport
    from ..serialization import EnvelopeSerializer

logger = logging.getLogger("stampbus.transports")


class TransportRegistry:
    """Name → transport instance. Each name resolves to exactly one transport."""

    def __init__(self, transports: dict[str, ITransport] | None = None) -> None:
        self._transports: dict[str, ITransport] = {}
        for name, transport in (transports or {}).items():
            self.add(name, transport)

    def add(self, name: str, transport: ITransport) -> None:
        if name in self._transports:
            raise ConfigurationError(f"Transport '{name}' is already configured")
        self._transports[name] = transport

    def get(self, name: str) -> ITransport:
        try:
            return self._transports[name]
        except KeyError:
            raise UnknownTransportError(name) from None

    def names(self) -> list[str]:
        return list(self._transports)

    def __contains__(self, name: object) -> bool:
        return name in self._transports

    def __iter__(self) -> Iterator[str]:
        return iter(self._transports)

    def __len__(self) -> int:
        return len(self._transports)

    async def close_all(self) -> None:
        """Close every transport, logging (not raising) individual failures."""
        for name, transport in self._transports.items():
            try:
                await transport.close()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to close transport %s", name)


def create_transport(
    name: str,
    dsn: str,
    serializer: EnvelopeSerializer,
) -> ITransport:
    """Build a transport for *dsn*, chosen by its scheme.

    ``memory://`` → :class:`InMemoryTransport`;
    ``amqp://`` / ``amqps://`` → :class:`AmqpTransport` (needs ``aio-pika``).
    The adapter parses the rest of the DSN.
    """
    scheme = urlsplit(dsn).scheme.lower()
    if scheme == "memory":
        from .memory import InMemoryTransport

        return InMemoryTransport.from_dsn(name, dsn, serializer)
    if scheme in ("amqp", "amqps"):
        try:
            from .amqp import AmqpTransport
        except ImportError as e:
            raise ConfigurationError(
                "AMQP transports need the 'amqp' extra: pip install stampbus[amqp]"
            ) from e

        return AmqpTransport.from_dsn(name, dsn, serializer)
    raise ConfigurationError(
        f"No transport adapter for DSN scheme '{scheme}' (transport '{name}')"
    )
