"""Exception taxonomy for the relay core.

None of these are fatal to the process.  The relay service catches each
one, logs it, and drops the single event or delivery it concerns.
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base exception for all relay errors."""


class UnknownOriginError(RelayError):
    """Raised when an event is tagged with a platform that is not configured."""

    def __init__(self, platform: str) -> None:
        super().__init__(f"Unknown message origin: {platform!r}")
        self.platform = platform


class UnknownEventKindError(RelayError):
    """Raised when the formatter meets an event or segment kind it cannot render."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown event kind: {kind!r}")
        self.kind = kind


class AdapterSendFailure(RelayError):
    """A platform adapter failed to deliver to one destination."""

    def __init__(self, target: Any, cause: BaseException) -> None:
        super().__init__(f"Send to {target} failed: {cause!r}")
        self.target = target
        self.cause = cause


class LookupFailure(RelayError):
    """Resolving a side-channel user id to a display name failed."""

    def __init__(self, user_id: str, cause: BaseException | str) -> None:
        super().__init__(f"Lookup of user {user_id!r} failed: {cause}")
        self.user_id = user_id
        self.cause = cause
