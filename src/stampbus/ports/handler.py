"""Handler port: callables that process one unwrapped message."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IMessageHandler(Protocol):
    """
    A message handler.

    Receives the message (not the envelope). It may be a plain function or
    a coroutine function; raising signals failure. Collaborators such as an
    output sink are injected at construction time by the hosting wiring.
    """

    def __call__(self, message: Any) -> Any: ...
