"""Runtime assembly: builds bus, transports and strategies from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .bus import MessageBus
from .locators import WILDCARD, HandlersLocator, SendersLocator
from .middleware import (
    HandleMessageMiddleware,
    LoggingMiddleware,
    SendMessageMiddleware,
)
from .primitives.exceptions import ConfigurationError, UnknownTransportError
from .serialization import EnvelopeSerializer
from .transports.registry import TransportRegistry, create_transport
from .worker import Worker

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from .config import BusSettings
    from .events import WorkerEvent
    from .locators import RoutingKey
    from .ports.middleware import IMiddleware
    from .ports.transport import ITransport
    from .registry import MessageTypeRegistry
    from .retry import RetryStrategy

logger = logging.getLogger("stampbus.wiring")


@dataclass
class Runtime:
    """Everything a producer or consumer process needs, wired once at startup."""

    settings: BusSettings
    bus: MessageBus
    transports: TransportRegistry
    retry_strategies: dict[str, RetryStrategy | None]
    serializer: EnvelopeSerializer
    senders: SendersLocator
    handlers: HandlersLocator

    @property
    def registry(self) -> MessageTypeRegistry:
        return self.serializer.registry

    async def dispatch(self, message: Any) -> Any:
        """Shortcut for ``runtime.bus.dispatch(message)``."""
        return await self.bus.dispatch(message)

    def worker(
        self,
        receivers: Iterable[str],
        *,
        listeners: Iterable[Callable[[WorkerEvent], None]] = (),
        **overrides: Any,
    ) -> Worker:
        """Build a worker for *receivers* using the configured worker settings.

        Keyword *overrides* (``sleep``, ``limit``, ``time_limit``) win over
        the settings.
        """
        options: dict[str, Any] = self.settings.worker.model_dump()
        options.update({k: v for k, v in overrides.items() if v is not None})
        return Worker(
            self.transports,
            receivers,
            self.bus,
            retry_strategies=self.retry_strategies,
            failure_transport=self.settings.failure_transport,
            listeners=listeners,
            **options,
        )

    async def close(self) -> None:
        await self.transports.close_all()


def build_runtime(
    settings: BusSettings,
    *,
    registry: MessageTypeRegistry,
    routing: Mapping[RoutingKey, Iterable[str]] | None = None,
    handlers: HandlersLocator | Mapping[RoutingKey, Iterable[Any]] | None = None,
    middlewares: Iterable[IMiddleware] = (),
    transports: Mapping[str, ITransport] | None = None,
) -> Runtime:
    """Assemble a :class:`Runtime`.

    Args:
        settings: Transports, routing and worker options.
        registry: Message types that may cross a transport.
        routing: Message class (or ``"*"``) → transport names, merged after
            the routing found in *settings*.
        handlers: A ready locator or a mapping message class → handlers.
        middlewares: Custom stages placed between logging and send.
        transports: Pre-built transports by name; they replace the DSN-built
            transport of the same name (or add one without retries).
    """
    settings.check_references()
    serializer = EnvelopeSerializer(registry)

    prebuilt = dict(transports or {})
    registry_ = TransportRegistry()
    for name, transport_settings in settings.transports.items():
        transport = prebuilt.pop(name, None)
        if transport is None:
            transport = create_transport(name, transport_settings.dsn, serializer)
        registry_.add(name, transport)
    for name, transport in prebuilt.items():
        registry_.add(name, transport)

    routes = _routing_from_settings(settings, registry)
    for key, names in (routing or {}).items():
        merged = routes.setdefault(key, [])
        for name in names:
            if name not in merged:
                merged.append(name)
    senders = SendersLocator(routes)
    for name in senders.transport_names():
        if name not in registry_:
            raise UnknownTransportError(name)

    handlers_locator = (
        handlers if isinstance(handlers, HandlersLocator) else HandlersLocator(handlers)
    )

    bus = MessageBus(
        [
            LoggingMiddleware(),
            *middlewares,
            SendMessageMiddleware(senders, registry_),
            HandleMessageMiddleware(
                handlers_locator, allow_no_handlers=settings.allow_no_handlers
            ),
        ]
    )
    logger.debug(
        "Runtime built with transports %s", ", ".join(registry_.names()) or "-"
    )
    return Runtime(
        settings=settings,
        bus=bus,
        transports=registry_,
        retry_strategies=settings.retry_strategies(),
        serializer=serializer,
        senders=senders,
        handlers=handlers_locator,
    )


def _routing_from_settings(
    settings: BusSettings, registry: MessageTypeRegistry
) -> dict[RoutingKey, list[str]]:
    routes: dict[RoutingKey, list[str]] = {}
    for type_name, names in settings.routing.items():
        key: RoutingKey
        if type_name == WILDCARD:
            key = WILDCARD
        else:
            message_class = registry.get(type_name)
            if message_class is None:
                raise ConfigurationError(
                    f"Routing names unregistered message type '{type_name}'"
                )
            key = message_class
        routes[key] = list(names)
    return routes
