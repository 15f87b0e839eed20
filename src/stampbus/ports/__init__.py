"""Ports: protocols implemented by adapters and application code."""

from stampbus.ports.background_worker import IBackgroundWorker
from stampbus.ports.handler import IMessageHandler
from stampbus.ports.middleware import IMiddleware
from stampbus.ports.transport import IReceiver, ISender, ITransport

__all__ = [
    "IBackgroundWorker",
    "IMessageHandler",
    "IMiddleware",
    "IReceiver",
    "ISender",
    "ITransport",
]
