"""IMiddleware: continuation-passing middleware protocol."""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Protocol,
    runtime_checkable,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..envelope import Envelope


@runtime_checkable
class IMiddleware(Protocol):
    """Protocol for a stage in the dispatch pipeline.

    A stage can inspect or stamp the envelope, short-circuit by not calling
    ``next_handler``, or perform side-effects around the rest of the chain.
    The chain is applied in **LIFO** order (first registered = outermost).
    """

    async def __call__(
        self,
        envelope: Envelope,
        next_handler: Callable[[Envelope], Awaitable[Envelope]],
    ) -> Envelope:
        """Execute middleware logic and call next_handler to proceed.

        Parameters
        ----------
        envelope:
            The envelope being dispatched.
        next_handler:
            Async callable representing the rest of the pipeline. It may be
            called at most once.

        Returns
        -------
        The envelope as it leaves this stage.
        """
        ...
