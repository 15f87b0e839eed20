"""Application wiring loaded by the CLI tests as ``cli_app:make_runtime``."""

from __future__ import annotations

from conftest import Greeting, Hello

from stampbus.config import load_settings
from stampbus.registry import MessageTypeRegistry
from stampbus.transports import InMemoryTransport
from stampbus.wiring import Runtime, build_runtime

GREETED: list[str] = []
QUEUE = InMemoryTransport("async")


def greet(message: Hello) -> str:
    GREETED.append(message.name)
    return f"hello {message.name}"


def make_runtime() -> Runtime:
    registry = MessageTypeRegistry()
    registry.register(Hello)
    registry.register(Greeting)
    settings = load_settings(
        transports={
            "async": {"dsn": "memory://"},
            "failed": {"dsn": "memory://", "retry_strategy": None},
        },
        routing={"Greeting": ["async"]},
        failure_transport="failed",
    )
    return build_runtime(
        settings,
        registry=registry,
        handlers={Hello: [greet]},
        transports={"async": QUEUE},
    )


not_a_runtime = 42
