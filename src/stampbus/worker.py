"""Worker: consumer loop polling receivers and dispatching to the bus."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING

from .events import WorkerEvent, WorkerEventEmitter, WorkerEventType
from .ports.background_worker import IBackgroundWorker
from .primitives.exceptions import SerializationError, TransportError
from .stamps import (
    NON_SENDABLE_STAMPS,
    DelayStamp,
    ErrorDetailsStamp,
    ReceivedStamp,
    RetryCountStamp,
    SentToFailureTransportStamp,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from .bus import MessageBus
    from .envelope import Envelope
    from .ports.transport import ITransport
    from .retry import RetryStrategy
    from .transports.registry import TransportRegistry

logger = logging.getLogger("stampbus.worker")

#: Upper bound for the connection-level backoff after transport errors.
MAX_BACKOFF = 30.0


class ProcessingOutcome(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    RETRIED = "retried"
    DEAD_LETTERED = "dead-lettered"


class Worker(IBackgroundWorker):
    """Consumes messages from one or more receiver transports.

    Each receiver runs its own loop (one asyncio task per receiver):
    poll → dispatch through the bus → ack, retry or dead-letter → poll. A
    loop never overlaps two messages, and a blocking handler only stalls
    its own receiver.

    On failure the receiver's :class:`RetryStrategy` decides: a retry
    rejects the delivery and sends a fresh copy carrying an incremented
    ``RetryCountStamp`` and a ``DelayStamp``; otherwise the delivery is
    rejected for good, after being forwarded to the failure transport when
    one is configured. Transport errors while polling are logged and retried
    with backoff; they never end a loop.

    ``stop()`` is graceful: an in-flight message finishes (or fails normally)
    before its loop exits.

    Usage::

        worker = Worker(transports, ["async"], bus,
                        retry_strategies={"async": RetryStrategy()})
        await worker.start()
        ...
        await worker.stop()
    """

    def __init__(
        self,
        transports: TransportRegistry,
        receivers: Iterable[str],
        bus: MessageBus,
        *,
        retry_strategies: Mapping[str, RetryStrategy | None] | None = None,
        failure_transport: str | None = None,
        sleep: float = 1.0,
        limit: int | None = None,
        time_limit: float | None = None,
        listeners: Iterable[Callable[[WorkerEvent], None]] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._receivers: dict[str, ITransport] = {
            name: transports.get(name) for name in receivers
        }
        if not self._receivers:
            raise ValueError("Worker needs at least one receiver")
        self._failure_transport_name = failure_transport
        self._failure_transport = (
            transports.get(failure_transport) if failure_transport else None
        )
        self._bus = bus
        self._retry_strategies = dict(retry_strategies or {})
        self._sleep = sleep
        self._limit = limit
        self._time_limit = time_limit
        self._clock = clock
        self._events = WorkerEventEmitter(listeners)

        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._started_at: float | None = None
        self._processed = 0

    @property
    def receiver_names(self) -> list[str]:
        return list(self._receivers)

    @property
    def processed(self) -> int:
        """Messages processed so far (acknowledged, retried or dead-lettered)."""
        return self._processed

    # ── Lifecycle ────────────────────────────────────────────────

    async def start(self) -> None:
        """Run the loops in a background task."""
        if self._task is not None and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Request a graceful stop and wait for every loop to exit."""
        self.request_stop()
        if self._task is not None:
            await self._task
            self._task = None

    def request_stop(self) -> None:
        """Ask the loops to exit after their current step (signal-safe)."""
        self._stop_event.set()

    def reset(self) -> None:
        """Clear a previous stop request so :meth:`run` can be called again."""
        self._stop_event.clear()

    async def run(self) -> None:
        """Run one loop per receiver until stopped; returns when all exit.

        A stop requested before the loops begin is honoured; call
        :meth:`reset` to run again after a stop.
        """
        self._started_at = self._clock()
        self._processed = 0
        names = ", ".join(self._receivers)
        self._events.emit(
            WorkerEvent(WorkerEventType.WORKER_STARTED, transport=names)
        )
        try:
            await asyncio.gather(
                *(self._consume(name) for name in self._receivers)
            )
        finally:
            self._events.emit(
                WorkerEvent(WorkerEventType.WORKER_STOPPED, transport=names)
            )

    # ── Loop ─────────────────────────────────────────────────────

    async def _consume(self, name: str) -> None:
        initial_backoff = max(self._sleep, 0.1)
        backoff = initial_backoff
        while not self._should_stop():
            try:
                outcome = await self.process_once(name)
            except TransportError:
                logger.exception(
                    "Transport %s failed; retrying in %.1fs", name, backoff
                )
                await self._idle(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
                continue
            except Exception:
                logger.exception(
                    "Unexpected error consuming %s; retrying in %.1fs",
                    name,
                    backoff,
                )
                await self._idle(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
                continue

            backoff = initial_backoff
            if outcome is None:
                await self._idle(self._sleep)
                continue

            self._processed += 1
            if self._limit is not None and self._processed >= self._limit:
                logger.info("Worker reached its limit of %d message(s)", self._limit)
                self.request_stop()

    def _should_stop(self) -> bool:
        if self._stop_event.is_set():
            return True
        if self._time_limit is not None and self._started_at is not None:
            if self._clock() - self._started_at >= self._time_limit:
                logger.info("Worker reached its time limit of %.1fs", self._time_limit)
                self.request_stop()
                return True
        return False

    async def _idle(self, seconds: float) -> None:
        """Sleep up to *seconds*, waking early when a stop is requested."""
        if self._time_limit is not None and self._started_at is not None:
            remaining = self._time_limit - (self._clock() - self._started_at)
            seconds = max(0.0, min(seconds, remaining))
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)

    # ── Processing ───────────────────────────────────────────────

    async def process_once(self, name: str) -> ProcessingOutcome | None:
        """Poll *name* once and process what it returns.

        Returns ``None`` when the receiver had nothing to deliver. Transport
        errors from polling, acking or rejecting propagate to the caller.
        """
        transport = self._receivers[name]
        try:
            envelope = await transport.get()
        except SerializationError as e:
            self._events.emit(
                WorkerEvent(
                    WorkerEventType.DEAD_LETTERED, transport=name, error=str(e)
                )
            )
            return ProcessingOutcome.DEAD_LETTERED
        if envelope is None:
            return None
        return await self._process(name, transport, envelope)

    async def _process(
        self,
        name: str,
        transport: ITransport,
        envelope: Envelope,
    ) -> ProcessingOutcome:
        envelope = envelope.with_stamp(ReceivedStamp(transport_name=name))
        self._events.emit(self._event(WorkerEventType.STARTED, name, envelope))
        try:
            await self._bus.dispatch(envelope)
        except Exception as error:  # noqa: BLE001
            return await self._handle_failure(name, transport, envelope, error)

        await transport.ack(envelope)
        self._events.emit(self._event(WorkerEventType.SUCCEEDED, name, envelope))
        return ProcessingOutcome.ACKNOWLEDGED

    async def _handle_failure(
        self,
        name: str,
        transport: ITransport,
        envelope: Envelope,
        error: Exception,
    ) -> ProcessingOutcome:
        retry_count = envelope.retry_count
        error_stamp = ErrorDetailsStamp.from_exception(error)
        strategy = self._retry_strategies.get(name)

        if strategy is not None and strategy.is_retryable(envelope, error):
            delay = strategy.delay_for(retry_count)
            await transport.reject(envelope, requeue=False)
            retry = _fresh_copy(envelope).with_stamp(
                RetryCountStamp(count=retry_count + 1),
                DelayStamp(delay=delay),
                error_stamp,
            )
            try:
                if delay > 0 and not transport.supports_delay:
                    await asyncio.sleep(delay)
                await transport.send(retry)
            except TransportError:
                logger.exception(
                    "Could not re-send %s to %s for retry",
                    envelope.message_name,
                    name,
                )
                await self._forward_to_failure_transport(name, envelope, error_stamp)
                self._events.emit(
                    self._event(
                        WorkerEventType.DEAD_LETTERED, name, envelope, error=error
                    )
                )
                return ProcessingOutcome.DEAD_LETTERED

            self._events.emit(
                self._event(
                    WorkerEventType.RETRIED, name, envelope, error=error, delay=delay
                )
            )
            return ProcessingOutcome.RETRIED

        await self._forward_to_failure_transport(name, envelope, error_stamp)
        await transport.reject(envelope, requeue=False)
        self._events.emit(
            self._event(WorkerEventType.DEAD_LETTERED, name, envelope, error=error)
        )
        return ProcessingOutcome.DEAD_LETTERED

    async def _forward_to_failure_transport(
        self,
        name: str,
        envelope: Envelope,
        error_stamp: ErrorDetailsStamp,
    ) -> None:
        if self._failure_transport is None or name == self._failure_transport_name:
            return
        failed = _fresh_copy(envelope).with_stamp(
            error_stamp,
            SentToFailureTransportStamp(original_transport_name=name),
        )
        try:
            await self._failure_transport.send(failed)
        except TransportError:
            logger.exception(
                "Could not forward %s to failure transport %s",
                envelope.message_name,
                self._failure_transport_name,
            )

    def _event(
        self,
        event: WorkerEventType,
        name: str,
        envelope: Envelope,
        *,
        error: BaseException | None = None,
        delay: float | None = None,
    ) -> WorkerEvent:
        return WorkerEvent(
            event,
            transport=name,
            message_type=envelope.message_name,
            retry_count=envelope.retry_count,
            delay=delay,
            error=str(error) if error is not None else None,
        )


def _fresh_copy(envelope: Envelope) -> Envelope:
    """Strip per-delivery stamps and any previous delay before re-sending."""
    return envelope.without_stamps_of(*NON_SENDABLE_STAMPS, DelayStamp)
