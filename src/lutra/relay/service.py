"""The relay service: one router task fed by every adapter.

Each adapter publishes onto its own bounded queue.  A pump task per
adapter moves events into a single bounded inbox, and a single router
task consumes the inbox in arrival order.  Session state is therefore only
ever touched from one task and needs no locking.

Side-channel attributions are the one event that has to wait on I/O (a
display-name lookup).  They are resolved in a separate task with a bounded
timeout, and the resolved attribution is posted back onto the inbox as a
fresh event rather than resumed in place, so unrelated events keep
flowing meanwhile.

Usage::

    service = RelayService(config, adapters, lookup=UserLookup(base_url))
    await service.start()
    ...
    await service.stop()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Protocol

from lutra.adapters.base import PlatformAdapter
from lutra.config import RelayConfig
from lutra.errors import LookupFailure, RelayError
from lutra.events import ChatEvent, Delivery, SideChannelAttribution
from lutra.formatting.emotes import EmoteTranslator
from lutra.formatting.formatter import EventFormatter
from lutra.relay.context import RelayContext
from lutra.relay.outbox import Outbox
from lutra.relay.router import RelayRouter

log = logging.getLogger(__name__)


class DisplayNameLookup(Protocol):
    async def display_name(self, user_id: str) -> str: ...


class RelayService:
    """Wire adapters, router, and outbox together.

    Args:
        config: The immutable routing configuration.
        adapters: Platform name -> adapter.
        lookup: Resolver for side-channel attributions.  Without one they
            are dropped.
        inbox_size: Capacity of the shared router inbox.
        outbox_size: Capacity of each per-destination queue.
        send_timeout: Seconds per adapter send.
        lookup_timeout: Seconds per display-name lookup.
    """

    def __init__(
        self,
        config: RelayConfig,
        adapters: Mapping[str, PlatformAdapter],
        *,
        lookup: DisplayNameLookup | None = None,
        inbox_size: int = 256,
        outbox_size: int = 64,
        send_timeout: float = 10.0,
        lookup_timeout: float = 15.0,
    ) -> None:
        self.context = RelayContext(config=config)
        self.router = RelayRouter(
            self.context,
            EventFormatter(config),
            EmoteTranslator(config.emotes),
        )
        self.adapters = dict(adapters)
        self.outbox = Outbox(self.adapters, send_timeout=send_timeout, maxsize=outbox_size)
        self.inbox: asyncio.Queue[ChatEvent] = asyncio.Queue(maxsize=inbox_size)
        self.lookup = lookup
        self.lookup_timeout = lookup_timeout

        self._tasks: set[asyncio.Task[None]] = set()
        self._lookups: set[asyncio.Task[None]] = set()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start every adapter, one pump per adapter, and the router task."""
        if self._running:
            return
        for adapter in self.adapters.values():
            await adapter.start()
            self._spawn(self._pump(adapter), f"pump:{adapter.name}")
        self._spawn(self._run(), "router")
        self._running = True
        log.info("Relay started with platforms: %s", ", ".join(self.adapters))

    async def stop(self) -> None:
        """Cancel all tasks, drop undelivered messages, stop every adapter."""
        self._running = False
        pending = [*self._tasks, *self._lookups]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self._lookups.clear()
        await self.outbox.close()

        for adapter in self.adapters.values():
            try:
                await adapter.stop()
            except Exception:
                log.warning("Stopping %s adapter failed", adapter.name, exc_info=True)
        log.info("Relay stopped")

    async def drain(self) -> None:
        """Wait until adapter queues, the inbox, lookups, and the outbox are empty."""
        while True:
            for adapter in self.adapters.values():
                await adapter.events.join()
            await self.inbox.join()
            if self._lookups:
                await asyncio.gather(*list(self._lookups), return_exceptions=True)
                continue
            await self.outbox.join()
            if self.inbox.empty() and not self._lookups:
                return

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle(self, event: ChatEvent) -> list[Delivery]:
        """Route one event and queue its deliveries.  Never raises RelayError."""
        try:
            if isinstance(event, SideChannelAttribution):
                if self.router.admit(event):
                    self._resolve_later(event)
                return []
            deliveries = self.router.route(event)
        except RelayError as exc:
            log.warning("Dropping %s from %s: %s", event.kind, event.platform, exc)
            return []

        for delivery in deliveries:
            self.outbox.submit(delivery)
        if deliveries:
            log.debug("Routed %s from %s:%s to %d target(s)",
                      event.kind, event.platform, event.channel, len(deliveries))
        return deliveries

    async def _run(self) -> None:
        while True:
            event = await self.inbox.get()
            try:
                self.handle(event)
            except Exception:
                log.exception("Unexpected error routing %s", event.kind)
            finally:
                self.inbox.task_done()

    async def _pump(self, adapter: PlatformAdapter) -> None:
        while True:
            event = await adapter.events.get()
            try:
                await self.inbox.put(event)
            finally:
                adapter.events.task_done()

    # ------------------------------------------------------------------
    # Side-channel lookups
    # ------------------------------------------------------------------

    def _resolve_later(self, event: SideChannelAttribution) -> None:
        lookup = self.lookup
        if lookup is None:
            log.warning("No user lookup configured, dropping %s for user %s", event.kind, event.user_id)
            return
        task = asyncio.create_task(self._resolve(lookup, event), name=f"lookup:{event.user_id}")
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)

    async def _resolve(self, lookup: DisplayNameLookup, event: SideChannelAttribution) -> None:
        try:
            name = await asyncio.wait_for(
                lookup.display_name(event.user_id), timeout=self.lookup_timeout,
            )
        except LookupFailure as exc:
            log.warning("%s", exc)
            return
        except Exception as exc:  # noqa: BLE001
            log.warning("%s", LookupFailure(event.user_id, exc))
            return
        await self.inbox.put(event.resolved(name))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
