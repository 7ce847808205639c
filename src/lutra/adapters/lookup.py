"""Async display-name lookup for side-channel attributions.

Side-channel events only carry the triggering user's numeric id.  This
client resolves it through the provider's public user API::

    GET {base_url}/users/{user_id}  ->  {"username": "..."}

Every failure surfaces as :class:`~lutra.errors.LookupFailure` so the
caller can drop the one event and carry on.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from lutra.errors import LookupFailure

logger = logging.getLogger(__name__)

_LOOKUP_TIMEOUT = aiohttp.ClientTimeout(total=15)


class UserLookup:
    """Async HTTP client resolving user ids to usernames.

    The :class:`aiohttp.ClientSession` is created lazily on first use so
    that instantiation is cheap and safe outside an async context.

    Args:
        base_url: Root of the user API, e.g. ``https://mixer.com/api/v1``.
        timeout: Total seconds per request.
    """

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout) if timeout else _LOOKUP_TIMEOUT
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
            )
        return self._session

    async def display_name(self, user_id: str) -> str:
        """Return the username for *user_id*.

        Raises:
            LookupFailure: On connection errors, non-2xx responses, or a
                body without a ``username``.
        """
        url = f"{self._base_url}/users/{user_id}"
        session = self._get_session()
        try:
            async with session.get(url, timeout=self._timeout) as resp:
                body: Any = await resp.json(content_type=None)
                if resp.status >= 400:
                    raise LookupFailure(user_id, f"HTTP {resp.status}")
        except LookupFailure:
            raise
        except (aiohttp.ClientError, OSError, TimeoutError, ValueError) as exc:
            raise LookupFailure(user_id, exc) from exc

        username = body.get("username") if isinstance(body, dict) else None
        if not username:
            raise LookupFailure(user_id, "response has no username")
        logger.debug("Resolved user %s to %s", user_id, username)
        return str(username)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
