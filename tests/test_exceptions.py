"""Tests for the stampbus exception hierarchy."""

from __future__ import annotations

from conftest import Hello

from stampbus.primitives.exceptions import (
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


def test_all_errors_share_the_root() -> None:
    for cls in (
        ConfigurationError,
        UnknownTransportError,
        PipelineError,
        TransportError,
        SerializationError,
        NoHandlerError,
        HandlerError,
        UnrecoverableMessageError,
    ):
        assert issubclass(cls, StampBusError)


def test_unknown_transport_error() -> None:
    error = UnknownTransportError("amqp")
    assert isinstance(error, ConfigurationError)
    assert error.name == "amqp"
    assert "amqp" in str(error)


def test_no_handler_error_names_message_type() -> None:
    error = NoHandlerError(Hello)
    assert error.message_type is Hello
    assert "Hello" in str(error)


def test_handler_error_carries_handler_name() -> None:
    error = HandlerError("failed", handler_name="greeter")
    assert error.handler_name == "greeter"
    assert str(error) == "failed"
    assert HandlerError("failed").handler_name is None


def test_is_retryable() -> None:
    assert is_retryable(HandlerError("x")) is True
    assert is_retryable(UnrecoverableMessageError("x")) is False
    assert is_retryable(TransportError("x")) is False
    assert is_retryable(ValueError("x")) is False
