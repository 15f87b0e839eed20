"""Shared fixtures: message models, registry, serializer and a manual clock."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from stampbus.registry import MessageTypeRegistry
from stampbus.serialization import EnvelopeSerializer


class Hello(BaseModel):
    name: str


class Greeting(BaseModel):
    text: str


class LoudHello(Hello):
    """Subclass used to check MRO-based routing."""


class ManualClock:
    """Monotonic clock the test advances explicitly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def registry() -> MessageTypeRegistry:
    reg = MessageTypeRegistry()
    reg.register(Hello)
    reg.register(Greeting)
    reg.register(LoudHello)
    return reg


@pytest.fixture
def serializer(registry: MessageTypeRegistry) -> EnvelopeSerializer:
    return EnvelopeSerializer(registry)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
