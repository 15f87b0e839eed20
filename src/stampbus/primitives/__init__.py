"""Primitive building blocks shared by every stampbus layer."""

from .exceptions import (
    ConfigurationError,
    HandlerError,
    NoHandlerError,
    PipelineError,
    SerializationError,
    StampBusError,
    TransportError,
    UnknownTransportError,
    UnrecoverableMessageError,
    is_retryable,
)

__all__ = [
    "ConfigurationError",
    "HandlerError",
    "NoHandlerError",
    "PipelineError",
    "SerializationError",
    "StampBusError",
    "TransportError",
    "UnknownTransportError",
    "UnrecoverableMessageError",
    "is_retryable",
]
