"""Relay router: who receives an event, and in what form.

The router is the single authority for routing decisions.  For every
inbound event it:

1. rejects events from unconfigured platforms (:class:`UnknownOriginError`);
2. applies the declared suppression rules;
3. handles coop control commands, which change session state and produce
   a fixed three-way announcement;
4. collapses repeated poll signals through the poll state machine;
5. formats everything else once and fans it out to its destinations,
   translating emotes per destination platform.

Destinations for an event from platform ``P`` on channel ``c``:

* the default channel of every platform ``P`` relays to;
* while coop is active, both coop channels on a relay-target platform;
* while coop is active and ``P`` is the coop platform, every coop channel
  other than ``c``.

An event is never sent back to the channel it came from.

Usage::

    router = RelayRouter(context, formatter, translator)
    for delivery in router.route(event):
        outbox.submit(delivery)
"""

from __future__ import annotations

import logging

from lutra.config import CoopConfig
from lutra.errors import UnknownOriginError
from lutra.events import (
    ChatEvent,
    ClearChat,
    CoopCommand,
    CoopControl,
    Delivery,
    PollEnd,
    PollStart,
    RoutingTarget,
)
from lutra.formatting.emotes import EmoteTranslator
from lutra.formatting.formatter import EventFormatter
from lutra.relay.context import RelayContext
from lutra.relay.suppression import find_suppression

log = logging.getLogger(__name__)


def channel_name(channel: str) -> str:
    """Return *channel* without its leading ``#``, lower-cased."""
    return channel.lstrip("#").lower()


class RelayRouter:
    """Decide the deliveries for each inbound event.

    Args:
        context: Configuration plus the session state this router owns.
        formatter: Renders events to text.
        translator: Rewrites emotes per destination platform.
    """

    def __init__(
        self,
        context: RelayContext,
        formatter: EventFormatter,
        translator: EmoteTranslator,
    ) -> None:
        self.context = context
        self.formatter = formatter
        self.translator = translator

    @property
    def coop_active(self) -> bool:
        return self.context.session.coop_active

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def admit(self, event: ChatEvent) -> bool:
        """Return ``True`` if *event* passes the origin and suppression checks.

        Raises:
            UnknownOriginError: If the event's platform is not configured.
        """
        if self.context.config.platform(event.platform) is None:
            raise UnknownOriginError(event.platform)
        return find_suppression(event, self.context) is None

    def route(self, event: ChatEvent) -> list[Delivery]:
        """Return every delivery *event* should produce.

        The returned list is order-independent.  An empty list means the
        event was dropped.

        Raises:
            UnknownOriginError: If the event's platform is not configured.
            UnknownEventKindError: If the event cannot be formatted.
        """
        if not self.admit(event):
            return []

        if isinstance(event, CoopControl):
            return self._route_coop_control(event)

        if isinstance(event, PollStart) and not self.context.session.open_poll(event.platform):
            log.debug("Poll already open on %s, dropping repeat signal", event.platform)
            return []
        if isinstance(event, PollEnd) and not self.context.session.close_poll(event.platform):
            log.debug("No open poll on %s, dropping poll end", event.platform)
            return []

        targets = self.destinations(event)
        if isinstance(event, ClearChat):
            # Clears never reach the origin platform's own channels.
            return [
                Delivery(target, "", action="clear")
                for target in targets
                if target.platform != event.platform
            ]

        text = self.formatter.format(event, self.coop_active)
        return [
            Delivery(target, self.translator.translate(text, event.platform, target.platform))
            for target in targets
        ]

    # ------------------------------------------------------------------
    # Destinations
    # ------------------------------------------------------------------

    def destinations(self, event: ChatEvent) -> list[RoutingTarget]:
        """Return the de-duplicated destinations for *event*."""
        config = self.context.config
        origin = config.platforms[event.platform]
        coop = config.coop if self.coop_active else None

        candidates: list[RoutingTarget] = []
        for dest in origin.relay_to:
            candidates.append(RoutingTarget(dest, config.platforms[dest].default_channel))
            if coop is not None and coop.platform == dest:
                candidates.extend(RoutingTarget(dest, ch) for ch in coop.channels)

        if coop is not None and coop.platform == event.platform:
            candidates.extend(RoutingTarget(event.platform, ch) for ch in coop.channels)

        source = (event.platform, channel_name(event.channel))
        seen: set[tuple[str, str]] = {source}
        targets: list[RoutingTarget] = []
        for target in candidates:
            key = (target.platform, channel_name(target.channel))
            if key in seen:
                continue
            seen.add(key)
            targets.append(target)
        return targets

    # ------------------------------------------------------------------
    # Coop control
    # ------------------------------------------------------------------

    def _route_coop_control(self, event: CoopControl) -> list[Delivery]:
        coop = self.context.config.coop
        if coop is None or event.platform != coop.platform:
            log.debug("Ignoring %s from %s: no coop on that platform", event.command.value, event.platform)
            return []

        issuer = channel_name(event.user)
        session = self.context.session

        if event.command is CoopCommand.START:
            if issuer != channel_name(coop.primary):
                log.debug("Ignoring %s from non-primary user %s", event.command.value, event.user)
                return []
            if not session.enter_coop():
                return []
            verb = "linked"
        else:
            if issuer not in (channel_name(ch) for ch in coop.channels):
                log.debug("Ignoring %s from non-coop user %s", event.command.value, event.user)
                return []
            if not session.exit_coop():
                return []
            verb = "ended"

        log.info("Coop chat %s by %s", verb, event.user)
        return self._coop_announcements(coop, verb)

    def _coop_announcements(self, coop: CoopConfig, verb: str) -> list[Delivery]:
        first, second = coop.channels
        greet_first, greet_second = coop.greetings
        url = coop.channel_url

        deliveries = [
            Delivery(
                RoutingTarget(coop.platform, first),
                f"{greet_first} Coop chat {verb} with {url}{channel_name(second)} {greet_second}".strip(),
            ),
            Delivery(
                RoutingTarget(coop.platform, second),
                f"{greet_second} Coop chat {verb} with {url}{channel_name(first)} {greet_first}".strip(),
            ),
        ]

        config = self.context.config
        for dest in config.platforms[coop.platform].relay_to:
            greeting = coop.counterpart_greetings.get(dest, "")
            deliveries.append(Delivery(
                RoutingTarget(dest, config.platforms[dest].default_channel),
                f"{greeting} Coop chat {verb} with {url}{channel_name(second)}".strip(),
            ))
        return deliveries
