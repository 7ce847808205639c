"""Per-destination delivery queues.

Each :class:`~lutra.events.RoutingTarget` gets its own FIFO queue and
worker task, created on first use.  Sends to one destination therefore keep
the order the router produced them in, while a slow or failing destination
never holds up the others.

Sends are fire-and-forget from the router's point of view: bounded by a
timeout, never retried, at most once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Mapping

from lutra.errors import AdapterSendFailure
from lutra.events import Delivery, RoutingTarget

if TYPE_CHECKING:
    from lutra.adapters.base import PlatformAdapter

log = logging.getLogger(__name__)


class Outbox:
    """Fan deliveries out to platform adapters.

    Args:
        adapters: Platform name -> adapter performing the sends.
        send_timeout: Seconds a single send or clear may take.
        maxsize: Capacity of each per-destination queue.  A delivery to a
            full queue is dropped with a warning.
    """

    def __init__(
        self,
        adapters: Mapping[str, PlatformAdapter],
        *,
        send_timeout: float = 10.0,
        maxsize: int = 64,
    ) -> None:
        self._adapters = adapters
        self._send_timeout = send_timeout
        self._maxsize = maxsize
        self._queues: dict[RoutingTarget, asyncio.Queue[Delivery]] = {}
        self._workers: dict[RoutingTarget, asyncio.Task[None]] = {}
        self.failures: int = 0

    def submit(self, delivery: Delivery) -> bool:
        """Queue *delivery* for its destination.  Returns ``False`` if dropped."""
        queue = self._queue_for(delivery.target)
        try:
            queue.put_nowait(delivery)
        except asyncio.QueueFull:
            log.warning("Outbox for %s is full, dropping delivery", delivery.target)
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued delivery has been attempted."""
        for queue in list(self._queues.values()):
            await queue.join()

    async def close(self) -> None:
        """Cancel all destination workers.  Undelivered items are discarded."""
        for task in self._workers.values():
            task.cancel()
        await asyncio.gather(*self._workers.values(), return_exceptions=True)
        self._workers.clear()
        self._queues.clear()

    @property
    def pending(self) -> int:
        return sum(q.qsize() for q in self._queues.values())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _queue_for(self, target: RoutingTarget) -> asyncio.Queue[Delivery]:
        queue = self._queues.get(target)
        if queue is None:
            queue = asyncio.Queue(maxsize=self._maxsize)
            self._queues[target] = queue
            self._workers[target] = asyncio.create_task(
                self._drain(target, queue), name=f"outbox:{target}",
            )
        return queue

    async def _drain(self, target: RoutingTarget, queue: asyncio.Queue[Delivery]) -> None:
        while True:
            delivery = await queue.get()
            try:
                await self._deliver(delivery)
            finally:
                queue.task_done()

    async def _deliver(self, delivery: Delivery) -> None:
        target = delivery.target
        adapter = self._adapters.get(target.platform)
        if adapter is None:
            log.error("No adapter for %s, dropping delivery", target)
            self.failures += 1
            return

        try:
            if delivery.action == "clear":
                coro = adapter.clear(target.channel)
            else:
                coro = adapter.send(target.channel, delivery.text)
            await asyncio.wait_for(coro, timeout=self._send_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.failures += 1
            log.warning("%s", AdapterSendFailure(target, exc))
