"""Worker events: structured log entries and listener notifications."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

_log = logging.getLogger("stampbus.worker")


class WorkerEventType(str, Enum):
    WORKER_STARTED = "worker-started"
    STARTED = "started"
    SUCCEEDED = "succeeded"
    RETRIED = "retried"
    DEAD_LETTERED = "dead-lettered"
    WORKER_STOPPED = "worker-stopped"


_LEVELS: dict[WorkerEventType, int] = {
    WorkerEventType.WORKER_STARTED: logging.INFO,
    WorkerEventType.STARTED: logging.DEBUG,
    WorkerEventType.SUCCEEDED: logging.INFO,
    WorkerEventType.RETRIED: logging.WARNING,
    WorkerEventType.DEAD_LETTERED: logging.ERROR,
    WorkerEventType.WORKER_STOPPED: logging.INFO,
}


@dataclass(frozen=True)
class WorkerEvent:
    """One step of the consumer loop, as seen by logs and listeners."""

    event: WorkerEventType
    transport: str | None = None
    message_type: str | None = None
    retry_count: int = 0
    delay: float | None = None
    error: str | None = None

    @property
    def level(self) -> int:
        return _LEVELS[self.event]

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "level": logging.getLevelName(self.level),
            "event": self.event.value,
            "message_type": self.message_type,
            "transport": self.transport,
            "retry_count": self.retry_count,
        }
        if self.delay is not None:
            entry["delay"] = round(self.delay, 3)
        if self.error is not None:
            entry["error"] = self.error
        return entry


class WorkerEventEmitter:
    """Logs each event as one JSON line and forwards it to listeners.

    A failing listener is logged and skipped; it never affects the loop.
    """

    def __init__(
        self,
        listeners: Iterable[Callable[[WorkerEvent], None]] = (),
        logger: logging.Logger | None = None,
    ) -> None:
        self._listeners = tuple(listeners)
        self._log = logger or _log

    def emit(self, event: WorkerEvent) -> None:
        self._log.log(event.level, json.dumps(event.to_dict()))
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                self._log.exception(
                    "Worker listener %r failed on %s", listener, event.event.value
                )
