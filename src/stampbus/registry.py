"""MessageTypeRegistry: maps message type names to their classes for hydration."""

from __future__ import annotations

import dataclasses
from typing import Any

from .primitives.exceptions import ConfigurationError


class MessageTypeRegistry:
    """Registry for mapping ``type_name: str`` → message class.

    Used by the serializer to rebuild messages received from a transport.
    Create one instance per application and register every message type
    that crosses a process boundary.

    Usage::

        registry = MessageTypeRegistry()
        registry.register(Hello)

        @registry.register(name="billing.invoice_paid")
        class InvoicePaid(BaseModel): ...

        message = registry.hydrate("Hello", {"name": "world"})
    """

    def __init__(self) -> None:
        self._by_name: dict[str, type[Any]] = {}
        self._by_class: dict[type[Any], str] = {}

    def register(
        self,
        message_class: type[Any] | None = None,
        *,
        name: str | None = None,
    ) -> Any:
        """Register *message_class*; also usable as a (parametrised) decorator."""
        if message_class is None:

            def wrapper(cls: type[Any]) -> type[Any]:
                self.register(cls, name=name)
                return cls

            return wrapper

        type_name = name or message_class.__name__
        existing = self._by_name.get(type_name)
        if existing is not None and existing is not message_class:
            raise ConfigurationError(
                f"Message type name '{type_name}' already registered "
                f"for {existing.__name__}"
            )
        self._by_name[type_name] = message_class
        self._by_class[message_class] = type_name
        return message_class

    def get(self, type_name: str) -> type[Any] | None:
        """Look up a message class by type name."""
        return self._by_name.get(type_name)

    def has(self, type_name: str) -> bool:
        return type_name in self._by_name

    def name_of(self, message_class: type[Any]) -> str | None:
        """Return the registered name of *message_class*, or ``None``."""
        return self._by_class.get(message_class)

    def hydrate(self, type_name: str, data: dict[str, Any]) -> Any:
        """Rebuild a message from its type name and body dict.

        Raises ``LookupError`` for unregistered names; validation errors from
        the message class propagate to the caller.
        """
        message_class = self.get(type_name)
        if message_class is None:
            raise LookupError(f"Message type '{type_name}' is not registered")
        if hasattr(message_class, "model_validate"):
            return message_class.model_validate(data)
        if dataclasses.is_dataclass(message_class):
            return message_class(**data)
        if issubclass(message_class, dict):
            return message_class(data)
        return message_class(**data)

    def list_registered(self) -> list[str]:
        """Return all registered type names."""
        return list(self._by_name.keys())

    def clear(self) -> None:
        """Remove all registrations (testing utility)."""
        self._by_name.clear()
        self._by_class.clear()
