"""Explicit state handed to the router and its rules."""

from __future__ import annotations

from dataclasses import dataclass, field

from lutra.config import RelayConfig
from lutra.relay.session import SessionState


@dataclass
class RelayContext:
    """Immutable configuration plus the mutable session it governs."""

    config: RelayConfig
    session: SessionState = field(default_factory=SessionState)
