"""Relay core: routing decisions, session state, and delivery.

Public API:
    :class:`RelayRouter` -- decides the deliveries for each event.
    :class:`RelayService` -- single router task fed by every adapter.
    :class:`SessionState` -- coop and poll state machines.
    :class:`Outbox` -- per-destination FIFO delivery.
"""

from lutra.relay.context import RelayContext
from lutra.relay.outbox import Outbox
from lutra.relay.router import RelayRouter
from lutra.relay.service import RelayService
from lutra.relay.session import CoopState, PollState, SessionState
from lutra.relay.suppression import DEFAULT_RULES, SuppressionRule, find_suppression

__all__ = [
    "DEFAULT_RULES",
    "CoopState",
    "Outbox",
    "PollState",
    "RelayContext",
    "RelayRouter",
    "RelayService",
    "SessionState",
    "SuppressionRule",
    "find_suppression",
]
