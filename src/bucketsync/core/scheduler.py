"""
Bounded concurrency for asyncio operations.

A self-refilling scheduler: every completed operation re-invokes ``process``,
which admits more work from the pending list, so at most ``concurrency``
operations are in flight without a fixed pool of workers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable

Operation = Callable[[], Awaitable[object]]


class BoundedScheduler:
    """
    Run deferred async operations with at most ``concurrency`` in flight.

    Admission is FIFO; completion order is whatever the event loop produces.

    Failure semantics: an exception raised by an operation propagates out of
    the ``process`` call that admitted it. Operations admitted in the same
    batch keep running, but the failed operation does not refill its slot, so
    the pending list may not drain after a failure. Callers that need every
    operation to run must handle errors inside the operation itself.

    Examples:
        >>> scheduler = BoundedScheduler(4, [lambda: upload(key) for key in keys])
        >>> await scheduler.process()
    """

    def __init__(self, concurrency: int, operations: Iterable[Operation]):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency
        self.in_progress = 0
        self._pending: list[Operation] = list(operations)

    @property
    def pending(self) -> int:
        """Number of operations not yet admitted."""
        return len(self._pending)

    async def process(self) -> None:
        """
        Admit as many pending operations as there are free slots and wait for them.

        Returns once this batch, and every refill triggered by its completions,
        has settled.
        """
        amount = min(self.concurrency - self.in_progress, len(self._pending))
        if amount <= 0:
            return

        batch = self._pending[:amount]
        del self._pending[:amount]
        # Counted before the first await so concurrent refills see the slots as taken
        self.in_progress += len(batch)

        await asyncio.gather(*(self._run(operation) for operation in batch))

    async def _run(self, operation: Operation) -> None:
        try:
            await operation()
        finally:
            self.in_progress -= 1
        await self.process()
