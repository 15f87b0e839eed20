"""AMQP transport adapter (optional extra: stampbus[amqp])."""

from __future__ import annotations

from .connection import AmqpConnectionManager
from .transport import AmqpTransport

__all__ = [
    "AmqpConnectionManager",
    "AmqpTransport",
]
