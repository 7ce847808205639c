"""Platform adapter contract.

An adapter wraps one chat provider's SDK client.  It hides authentication
and socket management, normalizes provider payloads into
:mod:`lutra.events` objects, and pushes them onto its own bounded queue.
The relay service drains that queue; a full queue makes the adapter wait,
which is the backpressure path back to the provider callback.

Adapters do not filter their own bot's events; the relay's suppression
table does that, so every event is still visible in debug logs.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from lutra.config import PlatformConfig
from lutra.events import ChatEvent

log = logging.getLogger(__name__)


class PlatformAdapter(ABC):
    """Abstract base for chat platform adapters.

    Args:
        name: Platform key as used in the relay configuration.
        config: That platform's configuration.
        queue_size: Capacity of the normalized event queue.
    """

    def __init__(self, name: str, config: PlatformConfig, *, queue_size: int = 128) -> None:
        self.name = name
        self.config = config
        self.events: asyncio.Queue[ChatEvent] = asyncio.Queue(maxsize=queue_size)
        self._running = False

    @property
    def username(self) -> str:
        return self.config.username

    @property
    def is_running(self) -> bool:
        return self._running

    async def publish(self, event: ChatEvent) -> None:
        """Queue a normalized event for the relay, waiting if the queue is full."""
        if event.platform != self.name:
            log.warning("%s adapter published an event tagged %r", self.name, event.platform)
        await self.events.put(event)

    @abstractmethod
    async def start(self) -> None:
        """Connect to the provider and begin publishing events."""

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect and release provider resources."""

    @abstractmethod
    async def send(self, channel: str, text: str) -> None:
        """Post *text* to *channel*.  Raises on failure."""

    @abstractmethod
    async def clear(self, channel: str) -> None:
        """Clear the chat window of *channel*.  Raises on failure."""
