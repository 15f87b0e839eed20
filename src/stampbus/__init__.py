"""stampbus: message bus and worker runtime.

Messages travel in stamped envelopes through a middleware pipeline that
either sends them to transports or hands them to handlers; workers consume
transports with per-transport retry strategies and a failure transport.
"""

from __future__ import annotations

__version__ = "0.1.0"

# ── Bus ──────────────────────────────────────────────────────────
from .bus import MessageBus

# ── Configuration ────────────────────────────────────────────────
from .config import (
    BusSettings,
    RetryStrategySettings,
    TransportSettings,
    WorkerSettings,
    load_settings,
)
from .envelope import Envelope

# ── Worker ───────────────────────────────────────────────────────
from .events import WorkerEvent, WorkerEventEmitter, WorkerEventType
from .locators import WILDCARD, HandlerDescriptor, HandlersLocator, SendersLocator

# ── Middleware ───────────────────────────────────────────────────
from .middleware import (
    HandleMessageMiddleware,
    LoggingMiddleware,
    SendMessageMiddleware,
    build_pipeline,
)

# ── Ports ────────────────────────────────────────────────────────
from .ports import IMessageHandler, IMiddleware, IReceiver, ISender, ITransport

# ── Primitives ───────────────────────────────────────────────────
from .primitives import (
    ConfigurationError,
    HandlerError,
    NoHandlerError,
    PipelineError,
    SerializationError,
    StampBusError,
    TransportError,
    UnknownTransportError,
    UnrecoverableMessageError,
)
from .registry import MessageTypeRegistry
from .retry import RetryStrategy
from .serialization import EnvelopeSerializer

# ── Stamps ───────────────────────────────────────────────────────
from .stamps import (
    DelayStamp,
    ErrorDetailsStamp,
    HandledStamp,
    ReceivedStamp,
    RetryCountStamp,
    SentStamp,
    SentToFailureTransportStamp,
    Stamp,
    TransportMessageIdStamp,
)

# ── Transports ───────────────────────────────────────────────────
from .transports import InMemoryTransport, TransportRegistry, create_transport
from .wiring import Runtime, build_runtime
from .worker import ProcessingOutcome, Worker

__all__: list[str] = [
    "__version__",
    # Envelope & stamps
    "Envelope",
    "Stamp",
    "DelayStamp",
    "ErrorDetailsStamp",
    "HandledStamp",
    "ReceivedStamp",
    "RetryCountStamp",
    "SentStamp",
    "SentToFailureTransportStamp",
    "TransportMessageIdStamp",
    # Bus
    "MessageBus",
    "SendersLocator",
    "HandlersLocator",
    "HandlerDescriptor",
    "WILDCARD",
    # Middleware
    "HandleMessageMiddleware",
    "LoggingMiddleware",
    "SendMessageMiddleware",
    "build_pipeline",
    # Ports
    "IMessageHandler",
    "IMiddleware",
    "IReceiver",
    "ISender",
    "ITransport",
    # Transports
    "InMemoryTransport",
    "TransportRegistry",
    "create_transport",
    "EnvelopeSerializer",
    "MessageTypeRegistry",
    # Worker
    "RetryStrategy",
    "Worker",
    "ProcessingOutcome",
    "WorkerEvent",
    "WorkerEventEmitter",
    "WorkerEventType",
    # Configuration
    "BusSettings",
    "RetryStrategySettings",
    "TransportSettings",
    "WorkerSettings",
    "load_settings",
    "Runtime",
    "build_runtime",
    # Primitives
    "StampBusError",
    "ConfigurationError",
    "UnknownTransportError",
    "PipelineError",
    "TransportError",
    "SerializationError",
    "NoHandlerError",
    "HandlerError",
    "UnrecoverableMessageError",
]
