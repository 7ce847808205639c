"""Twitch-style adapter over an IRC (tmi) chat client.

The wrapped client owns the socket.  Its callbacks hand this adapter the
tmi-style ``(channel, userstate, message)`` triple, which is normalized
here:

* ``chat`` lines become :class:`~lutra.events.PlainMessage`, except
  ``!startcoop`` / ``!endcoop`` lines, which become
  :class:`~lutra.events.CoopControl`.  Whether the issuer may use them is
  decided by the relay router, not here.
* ``action`` lines become :class:`~lutra.events.ActionMessage`.
* ``clearchat`` becomes :class:`~lutra.events.ClearChat`.

The client is duck-typed: it must provide ``connect()``,
``disconnect()``, ``say(channel, text)`` and ``clear(channel)``
coroutines.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from lutra.adapters.base import PlatformAdapter
from lutra.config import PlatformConfig
from lutra.events import (
    ActionMessage,
    ChatEvent,
    ClearChat,
    CoopCommand,
    CoopControl,
    PlainMessage,
)

log = logging.getLogger(__name__)


class TwitchAdapter(PlatformAdapter):
    """Normalize tmi-style callbacks and forward sends to the client."""

    def __init__(
        self,
        name: str,
        config: PlatformConfig,
        client: Any,
        *,
        queue_size: int = 128,
    ) -> None:
        super().__init__(name, config, queue_size=queue_size)
        self.client = client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self.client.connect()
        self._running = True
        log.info("Twitch login successful as %s (%s)", self.username, ", ".join(self.channels))

    async def stop(self) -> None:
        self._running = False
        await self.client.disconnect()

    @property
    def channels(self) -> list[str]:
        return self.config.channels or [self.config.default_channel]

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send(self, channel: str, text: str) -> None:
        await self.client.say(channel, text)

    async def clear(self, channel: str) -> None:
        await self.client.clear(channel)

    # ------------------------------------------------------------------
    # Inbound callbacks (called by the client glue)
    # ------------------------------------------------------------------

    async def on_chat(self, channel: str, userstate: Mapping[str, Any], message: str) -> None:
        await self.publish(self.parse_chat(channel, userstate, message))

    async def on_action(self, channel: str, userstate: Mapping[str, Any], message: str) -> None:
        await self.publish(self.parse_action(channel, userstate, message))

    async def on_clearchat(self, channel: str) -> None:
        await self.publish(ClearChat(platform=self.name, channel=channel))

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def parse_chat(self, channel: str, userstate: Mapping[str, Any], message: str) -> ChatEvent:
        user, display = _identity(userstate)
        command = CoopCommand.parse(message)
        if command is not None:
            return CoopControl(
                platform=self.name,
                channel=channel,
                user=user,
                display_name=display,
                command=command,
                raw={"userstate": dict(userstate), "message": message},
            )
        return PlainMessage.from_text(
            message,
            platform=self.name,
            channel=channel,
            user=user,
            display_name=display,
            raw={"userstate": dict(userstate), "message": message},
        )

    def parse_action(self, channel: str, userstate: Mapping[str, Any], message: str) -> ActionMessage:
        user, display = _identity(userstate)
        return ActionMessage.from_text(
            message,
            platform=self.name,
            channel=channel,
            user=user,
            display_name=display,
            raw={"userstate": dict(userstate), "message": message},
        )


def _identity(userstate: Mapping[str, Any]) -> tuple[str, str]:
    user = str(userstate.get("username") or "")
    display = str(userstate.get("display-name") or user)
    return user, display
