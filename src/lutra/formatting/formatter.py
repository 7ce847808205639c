"""Render normalized chat events as single human-readable lines.

Every relayed line carries its origin so viewers can tell where it came
from.  Outside a coop session the marker is the platform's short tag
(``[T]``); during coop it names the originating channel as well
(``[somechannel@Twitch]``) because two channels on the same platform are
talking at once.

Usage::

    formatter = EventFormatter(config)
    text = formatter.format(event, coop_active=False)
"""

from __future__ import annotations

import logging
import math

from lutra.config import PlatformConfig, RelayConfig
from lutra.errors import UnknownEventKindError, UnknownOriginError
from lutra.events import (
    ActionMessage,
    Attribution,
    ChatEvent,
    PlainMessage,
    PollEnd,
    PollStart,
    Segment,
)
from lutra.formatting.polls import highest_value, highest_value_keys

log = logging.getLogger(__name__)


class EventFormatter:
    """Pure ``(event, coop_active) -> text`` rendering.

    The formatter only reads the platform labels and tags from *config*; it
    holds no session state of its own.
    """

    def __init__(self, config: RelayConfig) -> None:
        self._config = config

    def format(self, event: ChatEvent, coop_active: bool) -> str:
        """Render *event* as one line of chat text.

        Raises:
            UnknownEventKindError: If *event* is not a renderable kind.
        """
        platform = self._platform(event)
        if isinstance(event, PlainMessage):
            return self.format_message(event, platform, coop_active)
        if isinstance(event, Attribution):
            return self.format_attribution(event, platform)
        if isinstance(event, PollStart):
            return self.format_poll_start(event, platform)
        if isinstance(event, PollEnd):
            return self.format_poll_end(event, platform)
        raise UnknownEventKindError(event.kind)

    # ------------------------------------------------------------------
    # Chat messages
    # ------------------------------------------------------------------

    def format_message(
        self, event: PlainMessage, platform: PlatformConfig, coop_active: bool,
    ) -> str:
        # Actions and stickers read as a sentence, so no colon.
        if isinstance(event, ActionMessage) or event.skill is not None:
            separator = " "
        else:
            separator = ": "

        body = ""
        for seg in event.segments:
            part = self._render_segment(seg, event, platform)
            # The sticker phrase is set off from any text before it.
            if seg.kind == "image" and body and not body.endswith(" "):
                part = " " + part
            body += part
        return f"{event.display_name}{separator}{body} {self.origin_tag(event, platform, coop_active)}"

    def _render_segment(self, seg: Segment, event: PlainMessage, platform: PlatformConfig) -> str:
        if seg.kind in ("text", "emoticon", "tag"):
            return seg.text
        if seg.kind == "link":
            return seg.url or seg.text
        if seg.kind == "image":
            if event.skill is None:
                return f"used a sticker on {platform.label}: {seg.text}"
            return (
                f"used a sticker on {platform.label}: {seg.text} "
                f"({event.skill.cost} {event.skill.currency})"
            )
        log.warning("Skipping message segment: %s", UnknownEventKindError(seg.kind))
        return ""

    @staticmethod
    def origin_tag(event: ChatEvent, platform: PlatformConfig, coop_active: bool) -> str:
        """Return the trailing origin marker for *event*."""
        if coop_active:
            return f"[{event.channel.lstrip('#')}@{platform.label}]"
        return f"[{platform.tag}]"

    # ------------------------------------------------------------------
    # Attributions and polls
    # ------------------------------------------------------------------

    @staticmethod
    def format_attribution(event: Attribution, platform: PlatformConfig) -> str:
        skill = event.skill
        return (
            f"{event.display_name} used a skill on {platform.label}: "
            f"{skill.name} ({skill.cost} {skill.currency})"
        )

    @staticmethod
    def format_poll_start(event: PollStart, platform: PlatformConfig) -> str:
        seconds = math.ceil(event.duration_ms / 1000)
        options = ", ".join(event.answers)
        return (
            f"{event.display_name} started a poll on {platform.label}: "
            f"{event.question} ({seconds}s) Options: {options}."
        )

    @staticmethod
    def format_poll_end(event: PollEnd, platform: PlatformConfig) -> str:
        prefix = f"Poll ended on {platform.label}: {event.question}"
        winners = highest_value_keys(event.responses)
        votes = highest_value(event.responses)
        if not winners:
            return f"{prefix} No votes were cast ({event.voters} voters)"
        if len(winners) == 1:
            return f"{prefix} Winner: {winners[0]} with {votes} votes ({event.voters} voters)"
        return (
            f"{prefix} It's a tie between {', '.join(winners)} "
            f"with {votes} votes each ({event.voters} voters)"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _platform(self, event: ChatEvent) -> PlatformConfig:
        platform = self._config.platform(event.platform)
        if platform is None:
            raise UnknownOriginError(event.platform)
        return platform
