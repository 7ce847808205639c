"""Transient relay session state.

Two small finite-state machines:

* :class:`CoopState` -- whether the two coop channels are currently linked.
* :class:`PollState` -- whether a poll is open on an origin platform.  Chat
  sockets repeat their "poll running" signal for as long as a poll lasts;
  the poll FSM collapses that burst to a single start.

Transitions are declared in tables so that which moves are legal can be
tested on its own.  Nothing here is persisted across restarts.
"""

from __future__ import annotations

import logging
from enum import Enum

log = logging.getLogger(__name__)


class CoopState(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class PollState(Enum):
    IDLE = "idle"
    OPEN = "open"


# (state, trigger) -> next state.  Anything missing is an illegal move.
COOP_TRANSITIONS: dict[tuple[CoopState, str], CoopState] = {
    (CoopState.INACTIVE, "enter"): CoopState.ACTIVE,
    (CoopState.ACTIVE, "exit"): CoopState.INACTIVE,
}

POLL_TRANSITIONS: dict[tuple[PollState, str], PollState] = {
    (PollState.IDLE, "open"): PollState.OPEN,
    (PollState.OPEN, "close"): PollState.IDLE,
}


class SessionState:
    """Coop flag plus one poll flag per origin platform.

    Owned by the relay router, which is the only caller of the mutators.
    All access happens from the single router task, so no locking is
    needed.
    """

    def __init__(self) -> None:
        self._coop = CoopState.INACTIVE
        self._polls: dict[str, PollState] = {}

    # ------------------------------------------------------------------
    # Coop
    # ------------------------------------------------------------------

    @property
    def coop(self) -> CoopState:
        return self._coop

    @property
    def coop_active(self) -> bool:
        return self._coop is CoopState.ACTIVE

    def enter_coop(self) -> bool:
        """Link the coop channels.  Returns ``False`` if already linked."""
        return self._move_coop("enter")

    def exit_coop(self) -> bool:
        """Unlink the coop channels.  Returns ``False`` if not linked."""
        return self._move_coop("exit")

    def _move_coop(self, trigger: str) -> bool:
        nxt = COOP_TRANSITIONS.get((self._coop, trigger))
        if nxt is None:
            log.debug("Ignoring coop %s while %s", trigger, self._coop.value)
            return False
        log.info("Coop state %s -> %s", self._coop.value, nxt.value)
        self._coop = nxt
        return True

    # ------------------------------------------------------------------
    # Polls
    # ------------------------------------------------------------------

    def poll_state(self, platform: str) -> PollState:
        return self._polls.get(platform, PollState.IDLE)

    def open_poll(self, platform: str) -> bool:
        """Record a "poll running" signal.  ``True`` only on the idle -> open edge."""
        return self._move_poll(platform, "open")

    def close_poll(self, platform: str) -> bool:
        """Record a poll end.  ``True`` only once per open poll."""
        return self._move_poll(platform, "close")

    def _move_poll(self, platform: str, trigger: str) -> bool:
        nxt = POLL_TRANSITIONS.get((self.poll_state(platform), trigger))
        if nxt is None:
            return False
        self._polls[platform] = nxt
        log.debug("Poll on %s is now %s", platform, nxt.value)
        return True
