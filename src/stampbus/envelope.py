"""Envelope: immutable wrapper carrying a message and its stamps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeVar

from .stamps import RetryCountStamp, Stamp

S = TypeVar("S", bound=Stamp)


@dataclass(frozen=True)
class Envelope:
    """A message plus an ordered tuple of stamps.

    The message reference never changes. Adding a stamp produces a new
    envelope, so any holder of an earlier envelope sees no mutation.

    Usage::

        envelope = Envelope.wrap(Hello(name="world"))
        retried = envelope.with_stamp(RetryCountStamp(count=1))
        retried.last_stamp_of(RetryCountStamp)
    """

    message: Any
    stamps: tuple[Stamp, ...] = field(default=())

    @classmethod
    def wrap(
        cls,
        message: Any,
        stamps: tuple[Stamp, ...] | list[Stamp] = (),
    ) -> Envelope:
        """Wrap *message*; an existing envelope is extended, never nested."""
        if isinstance(message, Envelope):
            return message.with_stamp(*stamps)
        return cls(message=message, stamps=tuple(stamps))

    def with_stamp(self, *stamps: Stamp) -> Envelope:
        """Return a new envelope with *stamps* appended."""
        if not stamps:
            return self
        return Envelope(message=self.message, stamps=(*self.stamps, *stamps))

    def without_stamps_of(self, *kinds: type[Stamp]) -> Envelope:
        """Return a new envelope with every stamp of the given kinds removed."""
        kept = tuple(s for s in self.stamps if not isinstance(s, kinds))
        return Envelope(message=self.message, stamps=kept)

    def all_stamps_of(self, kind: type[S]) -> tuple[S, ...]:
        return tuple(s for s in self.stamps if isinstance(s, kind))

    def last_stamp_of(self, kind: type[S]) -> S | None:
        for stamp in reversed(self.stamps):
            if isinstance(stamp, kind):
                return stamp
        return None

    @property
    def message_type(self) -> type[Any]:
        return type(self.message)

    @property
    def message_name(self) -> str:
        return self.message_type.__name__

    @property
    def retry_count(self) -> int:
        """Retry count from the last ``RetryCountStamp`` (``0`` if none)."""
        stamp = self.last_stamp_of(RetryCountStamp)
        return stamp.count if stamp is not None else 0
