"""Stamps: typed metadata attached to an envelope out-of-band of its message."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Stamp(BaseModel):
    """Base class for every stamp. Stamps are frozen once created."""

    model_config = ConfigDict(frozen=True)


class RetryCountStamp(Stamp):
    """Number of times the message has already been retried."""

    count: int = Field(default=0, ge=0)


class ReceivedStamp(Stamp):
    """Marks an envelope as consumed from the named transport."""

    transport_name: str


class SentStamp(Stamp):
    """Records a successful hand-off to a transport."""

    transport_name: str
    sent_at: datetime = Field(default_factory=_utcnow)


class DelayStamp(Stamp):
    """Asks the transport to withhold delivery for ``delay`` seconds."""

    delay: float = Field(default=0.0, ge=0.0)


class HandledStamp(Stamp):
    """Result returned by one handler during the handle stage."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handler_name: str
    result: Any = None


class TransportMessageIdStamp(Stamp):
    """Identifies the broker delivery behind a received envelope."""

    transport_name: str
    message_id: str


class ErrorDetailsStamp(Stamp):
    """Failure recorded by the worker when processing did not succeed."""

    exception_class: str
    message: str
    failed_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_exception(cls, error: BaseException) -> ErrorDetailsStamp:
        cause = error.__cause__ or error
        return cls(exception_class=type(cause).__name__, message=str(cause))


class SentToFailureTransportStamp(Stamp):
    """Marks a dead-lettered copy forwarded to the failure transport."""

    original_transport_name: str


#: Stamps that only describe a single delivery and never travel over the wire.
NON_SENDABLE_STAMPS: tuple[type[Stamp], ...] = (
    ReceivedStamp,
    TransportMessageIdStamp,
    HandledStamp,
)

BUILTIN_STAMPS: tuple[type[Stamp], ...] = (
    RetryCountStamp,
    ReceivedStamp,
    SentStamp,
    DelayStamp,
    HandledStamp,
    TransportMessageIdStamp,
    ErrorDetailsStamp,
    SentToFailureTransportStamp,
)
