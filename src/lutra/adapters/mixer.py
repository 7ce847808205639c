"""Mixer-style adapter over a chat socket plus a side-channel feed.

The chat socket delivers dict payloads keyed by event name.  This adapter
normalizes them:

========================  ==========================================
Payload                   Event
========================  ==========================================
``ChatMessage``           :class:`PlainMessage` / :class:`ActionMessage`
``SkillAttribution``      :class:`Attribution`
``GifAttribution``        :class:`SideChannelAttribution`
``PollStart``             :class:`PollStart` (repeats while open)
``PollEnd``               :class:`PollEnd`
``ClearMessages``         :class:`ClearChat`
========================  ==========================================

A Mixer bot sits in exactly one channel, its own, so every event is tagged
with the configured default channel and ``send`` ignores its channel
argument beyond a sanity check.

The socket client is duck-typed: ``connect()``, ``disconnect()`` and
``call(method, args)`` coroutines.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from lutra.adapters.base import PlatformAdapter
from lutra.config import PlatformConfig
from lutra.events import (
    ActionMessage,
    Attribution,
    ChatEvent,
    ClearChat,
    PlainMessage,
    PollEnd,
    PollStart,
    Segment,
    SideChannelAttribution,
    Skill,
)

log = logging.getLogger(__name__)

# Mixer segment type -> payload key carrying its text
_SEGMENT_TEXT_KEYS: dict[str, str] = {
    "text": "data",
    "emoticon": "text",
    "link": "text",
    "tag": "text",
    "image": "text",
}


class MixerAdapter(PlatformAdapter):
    """Normalize chat-socket payloads and forward sends to the socket."""

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
        self._parsers = {
            "ChatMessage": self.parse_chat_message,
            "SkillAttribution": self.parse_skill_attribution,
            "GifAttribution": self.parse_gif_attribution,
            "PollStart": self.parse_poll_start,
            "PollEnd": self.parse_poll_end,
            "ClearMessages": self.parse_clear_messages,
        }

    @property
    def channel(self) -> str:
        return self.config.default_channel

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self.client.connect()
        self._running = True
        log.info("Mixer login successful as %s", self.username)

    async def stop(self) -> None:
        self._running = False
        await self.client.disconnect()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send(self, channel: str, text: str) -> None:
        if channel != self.channel:
            log.debug("Mixer only chats in %s; sending there instead of %s", self.channel, channel)
        await self.client.call("msg", [text])

    async def clear(self, channel: str) -> None:
        await self.client.call("clearMessages", [])

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def on_event(self, name: str, data: Mapping[str, Any]) -> None:
        """Socket callback: normalize and publish one payload."""
        event = self.parse(name, data)
        if event is not None:
            await self.publish(event)

    def parse(self, name: str, data: Mapping[str, Any]) -> ChatEvent | None:
        parser = self._parsers.get(name)
        if parser is None:
            log.debug("Ignoring Mixer event %s", name)
            return None
        try:
            return parser(data)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Malformed Mixer %s payload: %s", name, exc)
            return None

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def parse_chat_message(self, data: Mapping[str, Any]) -> PlainMessage:
        message = data["message"]
        meta = message.get("meta", {})

        segments = tuple(_segment(part) for part in message.get("message", []))
        skill = _skill(meta["skill"]) if meta.get("is_skill") and meta.get("skill") else None

        cls = ActionMessage if meta.get("me") else PlainMessage
        return cls(
            platform=self.name,
            channel=self.channel,
            user=data.get("user_name", ""),
            display_name=data.get("user_name", ""),
            segments=segments,
            skill=skill,
            raw=data,
        )

    def parse_skill_attribution(self, data: Mapping[str, Any]) -> Attribution:
        return Attribution(
            platform=self.name,
            channel=self.channel,
            user=data.get("user_name", ""),
            display_name=data.get("user_name", ""),
            skill=_skill(data["skill"]),
            raw=data,
        )

    def parse_gif_attribution(self, data: Mapping[str, Any]) -> SideChannelAttribution:
        manifest = data.get("manifest", {})
        return SideChannelAttribution(
            platform=self.name,
            channel=self.channel,
            user_id=str(data["triggeringUserId"]),
            skill=Skill(
                name=manifest.get("name", "GIF"),
                cost=int(data.get("price", 0)),
                currency=data.get("currencyType", ""),
                kind="gif",
            ),
            raw=data,
        )

    def parse_poll_start(self, data: Mapping[str, Any]) -> PollStart:
        author = data.get("author", {})
        return PollStart(
            platform=self.name,
            channel=self.channel,
            user=author.get("user_name", ""),
            display_name=author.get("user_name", ""),
            question=data["q"],
            answers=tuple(data.get("answers", ())),
            duration_ms=int(data.get("duration", 0)),
            raw=data,
        )

    def parse_poll_end(self, data: Mapping[str, Any]) -> PollEnd:
        author = data.get("author", {})
        responses = {str(k): int(v) for k, v in data.get("responses", {}).items()}
        return PollEnd(
            platform=self.name,
            channel=self.channel,
            user=author.get("user_name", ""),
            display_name=author.get("user_name", ""),
            question=data.get("q", ""),
            responses=responses,
            voters=int(data.get("voters", sum(responses.values()))),
            raw=data,
        )

    def parse_clear_messages(self, data: Mapping[str, Any]) -> ClearChat:
        clearer = data.get("clearer", {})
        return ClearChat(
            platform=self.name,
            channel=self.channel,
            user=clearer.get("user_name", ""),
            display_name=clearer.get("user_name", ""),
            raw=data,
        )


def _segment(part: Mapping[str, Any]) -> Segment:
    kind = part.get("type", "")
    key = _SEGMENT_TEXT_KEYS.get(kind, "text")
    return Segment(kind=kind, text=str(part.get(key, "")), url=part.get("url"))


def _skill(data: Mapping[str, Any]) -> Skill:
    return Skill(
        name=data.get("skill_name", ""),
        cost=int(data.get("cost", 0)),
        currency=data.get("currency", ""),
        kind=data.get("type", "skill"),
    )
