"""Central configuration for Lutra Relay.

Two layers:

* :class:`RelaySettings` -- process settings loaded from environment
  variables (with ``.env`` file support via *python-dotenv*), validated by
  ``pydantic-settings``.
* :class:`RelayConfig` -- the routing configuration (platform identities,
  relay targets, coop channels, emote tables) loaded once from a JSON file
  and immutable for the lifetime of the process.

Usage::

    from lutra.config import get_settings, load_relay_config

    settings = get_settings()
    config = load_relay_config(settings.RELAY_CONFIG_PATH)

The :func:`get_settings` helper creates the :class:`RelaySettings` singleton
lazily so that importing this module never triggers validation before the
caller has had a chance to load a ``.env`` file.
"""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Canonical .env locations (checked in order of priority).
ENV_PATHS: list[str] = ["config/.env", ".env"]

# token -> destination platform -> replacement
EmoteTable = dict[str, dict[str, str]]


# ---------------------------------------------------------------------------
# Process settings
# ---------------------------------------------------------------------------


class RelaySettings(BaseSettings):
    """Process-level settings.  Every field has a default."""

    model_config = SettingsConfigDict(
        # .env loading is handled by load_dotenv() in __main__.py.
        env_file_encoding="utf-8",
        extra="ignore",
    )

    RELAY_CONFIG_PATH: str = Field(
        default="config/relay.json",
        description="Path to the JSON routing configuration.",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level for the relay process.",
    )

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------
    INBOX_SIZE: int = Field(
        default=256,
        ge=1,
        description="Capacity of the router inbox fed by all adapters.",
    )
    ADAPTER_QUEUE_SIZE: int = Field(
        default=128,
        ge=1,
        description="Capacity of each adapter's event queue.",
    )
    OUTBOX_SIZE: int = Field(
        default=64,
        ge=1,
        description="Capacity of each per-destination delivery queue.",
    )

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------
    SEND_TIMEOUT: float = Field(
        default=10.0,
        gt=0.0,
        description="Seconds a single adapter send may take before it is abandoned.",
    )
    LOOKUP_TIMEOUT: float = Field(
        default=15.0,
        gt=0.0,
        description="Seconds a side-channel display-name lookup may take.",
    )
    LOOKUP_BASE_URL: str | None = Field(
        default=None,
        description=(
            "Base URL of the user API used to resolve side-channel "
            "attributions.  When unset those attributions are dropped."
        ),
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level


# ---------------------------------------------------------------------------
# Routing configuration
# ---------------------------------------------------------------------------


class PlatformConfig(BaseModel):
    """Identity and routing for one chat platform."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str = Field(description="Human readable platform name, e.g. 'Twitch'.")
    tag: str = Field(description="Short origin marker, e.g. 'T' renders as '[T]'.")
    username: str = Field(description="The relay bot's login on this platform.")
    oauth: str = Field(default="", description="Credential handed to the adapter.")
    default_channel: str = Field(description="Channel that receives relayed traffic.")
    channels: list[str] = Field(default_factory=list)
    relay_to: list[str] = Field(default_factory=list)
    adapter: str | None = Field(
        default=None,
        description="Dotted 'module:factory' path that builds this platform's adapter.",
    )

    _SENSITIVE_FIELDS: ClassVar[set[str]] = {"oauth"}

    def __repr__(self) -> str:
        fields = []
        for name in type(self).model_fields:
            val = getattr(self, name)
            if name in self._SENSITIVE_FIELDS:
                val = "***" if val else None
            fields.append(f"{name}={val!r}")
        return f"PlatformConfig({', '.join(fields)})"

    __str__ = __repr__


class CoopConfig(BaseModel):
    """The two channels eligible for a coop link.  The first is primary."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    platform: str
    channels: tuple[str, str]
    greetings: tuple[str, str] = ("", "")
    counterpart_greetings: dict[str, str] = Field(default_factory=dict)
    channel_url: str = "https://twitch.tv/"

    @property
    def primary(self) -> str:
        return self.channels[0]

    @property
    def secondary(self) -> str:
        return self.channels[1]


class RelayConfig(BaseModel):
    """Immutable routing configuration for the whole relay."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    platforms: dict[str, PlatformConfig]
    coop: CoopConfig | None = None
    emotes: dict[str, EmoteTable] = Field(default_factory=dict)
    emote_maps: dict[str, str] = Field(
        default_factory=dict,
        description="origin platform -> JSON emote table file, merged into emotes on load.",
    )
    suppress_relayed_tags: bool = Field(
        default=False,
        description="Enable the deprecated filter that drops already-relayed text.",
    )

    @model_validator(mode="after")
    def _check_references(self) -> RelayConfig:
        if not self.platforms:
            raise ValueError("At least one platform must be configured.")
        for name, platform in self.platforms.items():
            for dest in platform.relay_to:
                if dest not in self.platforms:
                    raise ValueError(f"Platform {name!r} relays to unknown platform {dest!r}.")
                if dest == name:
                    raise ValueError(f"Platform {name!r} may not relay to itself.")
        if self.coop is not None:
            if self.coop.platform not in self.platforms:
                raise ValueError(f"Coop platform {self.coop.platform!r} is not configured.")
            if self.coop.channels[0] == self.coop.channels[1]:
                raise ValueError("Coop channels must be two distinct channels.")
        return self

    def platform(self, name: str) -> PlatformConfig | None:
        return self.platforms.get(name)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def find_env_file() -> Path | None:
    """Return the first existing ``.env`` file from :data:`ENV_PATHS`."""
    for candidate in ENV_PATHS:
        p = Path(candidate)
        if p.is_file():
            return p
    return None


def load_relay_config(path: str | Path) -> RelayConfig:
    """Load and validate the JSON routing configuration at *path*.

    Emote tables listed under ``emote_maps`` are read relative to the
    configuration file and merged over the inline ``emotes`` entries.

    Raises:
        FileNotFoundError: If *path* or a referenced emote file is missing.
        pydantic.ValidationError: If the configuration is invalid.
    """
    path = Path(path)
    data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))

    emotes: dict[str, EmoteTable] = dict(data.get("emotes", {}))
    for origin, filename in data.get("emote_maps", {}).items():
        table_path = path.parent / filename
        table = json.loads(table_path.read_text(encoding="utf-8"))
        emotes[origin] = {**emotes.get(origin, {}), **table}
        logger.debug("Loaded %d emote(s) for %s from %s", len(table), origin, table_path)
    data["emotes"] = emotes

    config = RelayConfig.model_validate(data)
    logger.info(
        "Relay configuration loaded: platforms=%s coop=%s",
        list(config.platforms), config.coop.platform if config.coop else None,
    )
    return config


# ---------------------------------------------------------------------------
# Lazy singleton accessor
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=1)
def get_settings() -> RelaySettings:
    """Return the global :class:`RelaySettings` singleton."""
    logger.debug("Initialising RelaySettings from environment.")
    return RelaySettings()
