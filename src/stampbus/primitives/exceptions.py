"""Bus, transport and handler exceptions for stampbus."""

from __future__ import annotations


class StampBusError(Exception):
    """Root exception for the entire stampbus runtime."""


class ConfigurationError(StampBusError):
    """Raised when the bus, a transport or the worker is wired incorrectly."""


class UnknownTransportError(ConfigurationError):
    """Raised when a transport name is not present in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Transport '{name}' is not configured")


class PipelineError(StampBusError):
    """Raised when a middleware stage invokes the rest of the chain twice."""


class TransportError(StampBusError):
    """Raised on connection or protocol failure in send, get, ack or reject.

    Never retried by the bus itself; the caller decides whether it is fatal.
    """


class SerializationError(StampBusError):
    """Raised when an envelope cannot be encoded or decoded.

    The bytes will not change on redelivery, so the worker never retries it.
    """


class NoHandlerError(StampBusError):
    """Raised when a message reaches the handle stage with no handlers."""

    def __init__(self, message_type: type[object]) -> None:
        self.message_type = message_type
        super().__init__(f"No handler for message {message_type.__name__}")


class HandlerError(StampBusError):
    """Raised when a handler fails.

    The only failure kind the worker hands to a retry strategy.
    """

    def __init__(self, message: str, handler_name: str | None = None) -> None:
        self.handler_name = handler_name
        super().__init__(message)


class UnrecoverableMessageError(HandlerError):
    """Raised by a handler to dead-letter the message without retrying."""


def is_retryable(error: BaseException) -> bool:
    """Return True if *error* may be handed to a retry strategy."""
    return isinstance(error, HandlerError) and not isinstance(
        error, UnrecoverableMessageError
    )
