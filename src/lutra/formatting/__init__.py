"""Event rendering and per-destination text rewriting.

Public API:
    :class:`EventFormatter` -- renders a normalized event as one line.
    :class:`EmoteTranslator` -- maps emote tokens between platforms.
"""

from lutra.formatting.emotes import EmoteTranslator
from lutra.formatting.formatter import EventFormatter
from lutra.formatting.polls import highest_value, highest_value_keys

__all__ = [
    "EmoteTranslator",
    "EventFormatter",
    "highest_value",
    "highest_value_keys",
]
