"""build_pipeline: construct middleware chain."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..primitives.exceptions import PipelineError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..envelope import Envelope
    from ..ports.middleware import IMiddleware

    Next = Callable[[Envelope], Awaitable[Envelope]]


def build_pipeline(
    middlewares: list[IMiddleware],
    terminal: Next,
) -> Next:
    """Build a LIFO middleware chain ending at *terminal*.

    The first middleware in the list is the **outermost** wrapper.
    Each middleware must implement: ``async def __call__(envelope, next_handler)``.
    Every ``next_handler`` handed to a stage may be awaited at most once per
    dispatch; a second call raises :class:`PipelineError`.
    """
    pipeline: Next = terminal

    for mw in reversed(middlewares):
        current_next = pipeline  # capture for closure

        async def _wrapper(
            envelope: Envelope,
            _mw: IMiddleware = mw,
            _next: Next = current_next,
        ) -> Envelope:
            return await _mw(envelope, _once(_mw, _next))

        pipeline = _wrapper

    return pipeline


def _once(mw: IMiddleware, next_handler: Next) -> Next:
    called = False

    async def _guarded(envelope: Envelope) -> Envelope:
        nonlocal called
        if called:
            raise PipelineError(
                f"{type(mw).__name__} called the next stage more than once"
            )
        called = True
        return await next_handler(envelope)

    return _guarded


async def end_of_chain(envelope: Envelope) -> Envelope:
    """Terminal stage: the envelope leaves the pipeline unchanged."""
    return envelope
