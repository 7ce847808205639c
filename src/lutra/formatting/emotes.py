"""Emote translation between platforms.

Each origin platform has a table mapping its emote tokens to the
equivalent token on every destination platform::

    {"mixer": {":mixerlove": {"twitch": "TwitchUnity"}}}

Mappings are not bijective; translating there and back need not return
the original text.
"""

from __future__ import annotations

import logging
from typing import Mapping

log = logging.getLogger(__name__)


class EmoteTranslator:
    """Rewrite origin-platform emote tokens for a destination platform.

    Tokens are replaced in table order, which is stable for a given
    configuration, so output is reproducible for a fixed input.

    Args:
        tables: origin platform -> token -> destination platform -> token.
    """

    def __init__(self, tables: Mapping[str, Mapping[str, Mapping[str, str]]]) -> None:
        self._tables = tables
        self._warned: set[tuple[str, str]] = set()

    def translate(self, text: str, origin: str, destination: str) -> str:
        """Return *text* with every known *origin* emote mapped to *destination*."""
        if origin == destination:
            return text

        table = self._tables.get(origin)
        if not table:
            return text

        for token, replacements in table.items():
            replacement = replacements.get(destination)
            if replacement is None:
                self._warn_unmapped(origin, destination, token)
                continue
            if token in text:
                text = text.replace(token, replacement)
        return text

    def _warn_unmapped(self, origin: str, destination: str, token: str) -> None:
        key = (origin, destination)
        if key in self._warned:
            return
        self._warned.add(key)
        log.warning(
            "Unknown emote mapping destination %s for %s emote %r (further misses not logged)",
            destination, origin, token,
        )
