"""IBackgroundWorker: lifecycle of long-running consumers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IBackgroundWorker(Protocol):
    """
    Lifecycle of a consumer that runs until stopped.

    ``run`` drives the loops in the current task; ``start`` drives them in a
    background task. ``request_stop`` only sets a flag, so it may be called
    from a signal handler; the loops exit after finishing the envelope they
    are processing. ``stop`` requests a stop and waits for that exit.

    Implemented by: ``Worker``.
    """

    async def run(self) -> None:
        """Consume until stopped or a configured limit is reached."""
        ...

    async def start(self) -> None:
        """Run in a background task; no-op while already running."""
        ...

    def request_stop(self) -> None:
        """Ask the loops to exit after their current step."""
        ...

    async def stop(self) -> None:
        """Request a stop and wait for the loops to exit."""
        ...
