"""Transport adapters and the name → transport registry."""

from __future__ import annotations

from .memory import InMemoryTransport
from .registry import TransportRegistry, create_transport

__all__ = [
    "InMemoryTransport",
    "TransportRegistry",
    "create_transport",
]
