"""Senders and handlers locators: message type to transports / handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .primitives.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

logger = logging.getLogger(__name__)

#: Routing key matching every message type.
WILDCARD = "*"

RoutingKey = type[Any] | str


def _matching_keys(
    message_type: type[Any], keys: Iterable[RoutingKey]
) -> list[RoutingKey]:
    """Return the routing keys that apply to *message_type*, MRO first."""
    known = set(keys)
    matched: list[RoutingKey] = [cls for cls in message_type.__mro__ if cls in known]
    if WILDCARD in known:
        matched.append(WILDCARD)
    return matched


def _check_key(key: RoutingKey) -> None:
    if isinstance(key, str) and key != WILDCARD:
        raise ConfigurationError(
            f"Routing key {key!r} must be a message class or '{WILDCARD}'"
        )


class SendersLocator:
    """Maps a message type to the ordered transport names it is sent to.

    Keys are message classes (matched along the MRO, so a base class routes
    its subclasses) or ``"*"`` for every message. An empty result means the
    message is handled locally.

    Usage::

        senders = SendersLocator({Hello: ["amqp"], "*": ["audit"]})
        senders.senders_for(Hello)  # ("amqp", "audit")
    """

    def __init__(
        self,
        routing: Mapping[RoutingKey, Iterable[str]] | None = None,
    ) -> None:
        self._routing: dict[RoutingKey, tuple[str, ...]] = {}
        for key, names in (routing or {}).items():
            _check_key(key)
            self._routing[key] = tuple(names)

    def senders_for(self, message_type: type[Any]) -> tuple[str, ...]:
        names: list[str] = []
        for key in _matching_keys(message_type, self._routing):
            for name in self._routing[key]:
                if name not in names:
                    names.append(name)
        return tuple(names)

    def transport_names(self) -> set[str]:
        """Every transport name referenced by the routing table."""
        return {name for names in self._routing.values() for name in names}


@dataclass(frozen=True)
class HandlerDescriptor:
    """A handler callable plus the metadata the handle stage needs."""

    handler: Callable[[Any], Any]
    name: str
    from_transport: str | None = None

    @classmethod
    def of(
        cls,
        handler: Callable[[Any], Any],
        *,
        name: str | None = None,
        from_transport: str | None = None,
    ) -> HandlerDescriptor:
        if isinstance(handler, HandlerDescriptor):
            return handler
        return cls(
            handler=handler,
            name=name or _handler_name(handler),
            from_transport=from_transport,
        )

    def accepts(self, received_from: str | None) -> bool:
        """Return True if the handler runs for an envelope from *received_from*."""
        return self.from_transport is None or self.from_transport == received_from


def _handler_name(handler: Callable[[Any], Any]) -> str:
    name = getattr(handler, "__qualname__", None)
    if name is None:
        name = type(handler).__qualname__
    return str(name)


class HandlersLocator:
    """Maps a message type to its ordered handlers.

    Multiple handlers per type are allowed and run in registration order.
    Registering the same callable twice for one type is a no-op.
    """

    def __init__(
        self,
        handlers: Mapping[RoutingKey, Iterable[Callable[[Any], Any]]] | None = None,
    ) -> None:
        self._handlers: dict[RoutingKey, list[HandlerDescriptor]] = {}
        for key, callables in (handlers or {}).items():
            for handler in callables:
                self.register(key, handler)

    # ── Registration ─────────────────────────────────────────────

    def register(
        self,
        message_type: RoutingKey,
        handler: Callable[[Any], Any],
        *,
        name: str | None = None,
        from_transport: str | None = None,
    ) -> None:
        _check_key(message_type)
        descriptor = HandlerDescriptor.of(
            handler, name=name, from_transport=from_transport
        )
        handlers = self._handlers.setdefault(message_type, [])
        if any(d.handler is descriptor.handler for d in handlers):
            return
        handlers.append(descriptor)
        logger.debug(
            "Registered handler %s -> %s",
            getattr(message_type, "__name__", message_type),
            descriptor.name,
        )

    # ── Lookup ───────────────────────────────────────────────────

    def handlers_for(
        self,
        message_type: type[Any],
        received_from: str | None = None,
    ) -> tuple[HandlerDescriptor, ...]:
        """Return handlers for *message_type* accepting *received_from*."""
        result: list[HandlerDescriptor] = []
        for key in _matching_keys(message_type, self._handlers):
            for descriptor in self._handlers[key]:
                if descriptor.accepts(received_from) and descriptor not in result:
                    result.append(descriptor)
        return tuple(result)

    def get_registered_handlers(self) -> dict[str, list[str]]:
        """Return a snapshot of all registered handlers (for debugging)."""
        return {
            getattr(k, "__name__", str(k)): [d.name for d in v]
            for k, v in self._handlers.items()
        }
