"""Normalized chat events and routing value types.

Platform adapters translate provider payloads into the frozen dataclasses
below.  The relay core never looks at provider payloads directly; ``raw``
is kept only for logging and debugging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, NamedTuple


# ---------------------------------------------------------------------------
# Routing value types
# ---------------------------------------------------------------------------


class RoutingTarget(NamedTuple):
    """A destination chat surface."""

    platform: str
    channel: str

    def __str__(self) -> str:
        return f"{self.platform}:{self.channel}"


class Delivery(NamedTuple):
    """One outbound action decided by the router."""

    target: RoutingTarget
    text: str
    action: str = "send"  # "send" or "clear"


# ---------------------------------------------------------------------------
# Message parts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Segment:
    """One ordered part of a chat message.

    ``kind`` is one of ``text``, ``emoticon``, ``link``, ``tag`` or
    ``image``.  Links carry their target in ``url``; every other kind
    renders from ``text``.
    """

    kind: str
    text: str = ""
    url: str | None = None


@dataclass(frozen=True, slots=True)
class Skill:
    """A paid interactive feature redeemed in chat."""

    name: str
    cost: int
    currency: str
    kind: str = "skill"  # "gif" for GIF skills

    @property
    def is_gif(self) -> bool:
        return self.kind.lower() == "gif"


class CoopCommand(Enum):
    START = "!startcoop"
    END = "!endcoop"

    @classmethod
    def parse(cls, text: str) -> CoopCommand | None:
        """Return the command *text* starts with, if any."""
        words = text.strip().split(maxsplit=1)
        if not words:
            return None
        for command in cls:
            if words[0].lower() == command.value:
                return command
        return None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class ChatEvent:
    """Base for every normalized event.

    Attributes:
        platform: Origin platform key, as configured.
        channel: Origin channel identifier on that platform.
        user: Login identity of the user who caused the event.
        display_name: Human readable name shown in relayed text.
        raw: The provider payload the event was built from.
    """

    platform: str
    channel: str
    user: str = ""
    display_name: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, kw_only=True)
class PlainMessage(ChatEvent):
    segments: tuple[Segment, ...] = ()
    skill: Skill | None = None

    @classmethod
    def from_text(cls, text: str, **fields: Any) -> PlainMessage:
        return cls(segments=(Segment("text", text),), **fields)

    @property
    def text(self) -> str:
        """Plain text of the message, ignoring non-text segments."""
        return "".join(s.text for s in self.segments if s.kind == "text")


@dataclass(frozen=True, kw_only=True)
class ActionMessage(PlainMessage):
    """A ``/me`` style message."""


@dataclass(frozen=True, kw_only=True)
class Attribution(ChatEvent):
    skill: Skill
    # Set when built from a resolved SideChannelAttribution.
    from_side_channel: bool = False


@dataclass(frozen=True, kw_only=True)
class SideChannelAttribution(ChatEvent):
    """Attribution that only knows the triggering user's id.

    Must be resolved with a display-name lookup before it can be formatted.
    """

    user_id: str
    skill: Skill

    def resolved(self, display_name: str) -> Attribution:
        return Attribution(
            platform=self.platform,
            channel=self.channel,
            user=display_name,
            display_name=display_name,
            skill=self.skill,
            from_side_channel=True,
            raw=self.raw,
        )


@dataclass(frozen=True, kw_only=True)
class PollStart(ChatEvent):
    """A "poll running" signal.  Adapters may repeat it while the poll is open."""

    question: str
    answers: tuple[str, ...] = ()
    duration_ms: int = 0


@dataclass(frozen=True, kw_only=True)
class PollEnd(ChatEvent):
    question: str
    responses: Mapping[str, int] = field(default_factory=dict)
    voters: int = 0


@dataclass(frozen=True, kw_only=True)
class ClearChat(ChatEvent):
    pass


@dataclass(frozen=True, kw_only=True)
class CoopControl(ChatEvent):
    command: CoopCommand
