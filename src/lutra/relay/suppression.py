"""Declared suppression rules.

Every filter that drops an inbound event before routing lives in
:data:`DEFAULT_RULES`.  The router asks :func:`find_suppression` for the
first enabled rule matching an event and drops the event if there is one.

``self_echo`` is the stable loop guard.  ``relayed_tag`` is the older
text-based guard; it stays declared but disabled unless the configuration
opts back in with ``suppress_relayed_tags``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from lutra.events import (
    Attribution,
    ChatEvent,
    CoopControl,
    PlainMessage,
    SideChannelAttribution,
)
from lutra.relay.context import RelayContext

log = logging.getLogger(__name__)

Predicate = Callable[[ChatEvent, RelayContext], bool]

# Events a user writes into chat.  Only these can loop back through the relay.
_CHAT_LIKE = (PlainMessage, Attribution, SideChannelAttribution, CoopControl)


@dataclass(frozen=True)
class SuppressionRule:
    name: str
    description: str
    predicate: Predicate
    enabled: bool = True
    # RelayConfig flag that switches the rule on, overriding ``enabled``.
    enabled_by: str | None = None

    def is_enabled(self, context: RelayContext) -> bool:
        if self.enabled_by is not None:
            return bool(getattr(context.config, self.enabled_by))
        return self.enabled

    def matches(self, event: ChatEvent, context: RelayContext) -> bool:
        return self.is_enabled(context) and self.predicate(event, context)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _is_self(event: ChatEvent, context: RelayContext) -> bool:
    if not isinstance(event, _CHAT_LIKE):
        return False
    platform = context.config.platform(event.platform)
    if platform is None:
        return False
    own = platform.username.lower()
    if not own:
        return False
    return own in (event.user.lower(), event.display_name.lower())


def _is_gif_skill(event: ChatEvent, context: RelayContext) -> bool:
    return isinstance(event, Attribution) and event.skill.is_gif and not event.from_side_channel


def _is_idle_coop_channel(event: ChatEvent, context: RelayContext) -> bool:
    # Coop commands are authorized by issuer, not by the channel they were typed in.
    if isinstance(event, CoopControl):
        return False
    coop = context.config.coop
    if coop is None or event.platform != coop.platform:
        return False
    if context.session.coop_active:
        return False
    return _same_channel(event.channel, coop.secondary)


def _is_already_relayed(event: ChatEvent, context: RelayContext) -> bool:
    if not isinstance(event, PlainMessage) or not event.segments:
        return False
    first = event.segments[0].text.rstrip()
    for name, platform in context.config.platforms.items():
        if name == event.platform:
            continue
        if first.endswith(f"[{platform.tag}]") or first.endswith(f"@{platform.label}]"):
            return True
    return False


def _same_channel(a: str, b: str) -> bool:
    return a.lstrip("#").lower() == b.lstrip("#").lower()


DEFAULT_RULES: tuple[SuppressionRule, ...] = (
    SuppressionRule(
        name="self_echo",
        description="Events reported by the relay's own bot identity.",
        predicate=_is_self,
    ),
    SuppressionRule(
        name="gif_skill_attribution",
        description="GIF skills; the adapter emits a richer side-channel attribution for them.",
        predicate=_is_gif_skill,
    ),
    SuppressionRule(
        name="idle_coop_channel",
        description="Traffic from the secondary coop channel while coop is inactive.",
        predicate=_is_idle_coop_channel,
    ),
    SuppressionRule(
        name="relayed_tag",
        description="Deprecated: text already ending in another platform's relay tag.",
        predicate=_is_already_relayed,
        enabled=False,
        enabled_by="suppress_relayed_tags",
    ),
)


def find_suppression(
    event: ChatEvent,
    context: RelayContext,
    rules: Sequence[SuppressionRule] = DEFAULT_RULES,
) -> SuppressionRule | None:
    """Return the first enabled rule that drops *event*, or ``None``."""
    for rule in rules:
        if rule.matches(event, context):
            log.debug("Suppressed %s from %s:%s by %s", event.kind, event.platform, event.channel, rule.name)
            return rule
    return None
