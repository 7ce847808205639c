"""Platform adapters: normalized event streams over provider SDK clients.

Public API:
    :class:`PlatformAdapter` -- the adapter contract.
    :class:`TwitchAdapter` -- tmi-style multi-channel chat.
    :class:`MixerAdapter` -- single-channel chat socket with side-channel skills.
    :class:`UserLookup` -- resolves side-channel user ids to names.
"""

from lutra.adapters.base import PlatformAdapter
from lutra.adapters.lookup import UserLookup
from lutra.adapters.mixer import MixerAdapter
from lutra.adapters.twitch import TwitchAdapter

__all__ = [
    "MixerAdapter",
    "PlatformAdapter",
    "TwitchAdapter",
    "UserLookup",
]
