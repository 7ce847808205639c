"""Shared fixtures for the Lutra Relay test suite."""

import asyncio

import pytest

from lutra.adapters.base import PlatformAdapter
from lutra.config import RelayConfig
from lutra.events import PlainMessage
from lutra.formatting import EmoteTranslator, EventFormatter
from lutra.relay import RelayContext, RelayRouter


CONFIG_DATA = {
    "platforms": {
        "twitch": {
            "label": "Twitch",
            "tag": "T",
            "username": "lutrabot",
            "oauth": "oauth:secret",
            "default_channel": "#streamer",
            "channels": ["#streamer", "#friend"],
            "relay_to": ["mixer"],
        },
        "mixer": {
            "label": "Mixer",
            "tag": "M",
            "username": "mixbot",
            "oauth": "mixer-secret",
            "default_channel": "streamer",
            "relay_to": ["twitch"],
        },
    },
    "coop": {
        "platform": "twitch",
        "channels": ["#streamer", "#friend"],
        "greetings": ["TwitchUnity", "lordafSun"],
        "counterpart_greetings": {"mixer": ":mixerlove"},
        "channel_url": "https://twitch.tv/",
    },
    "emotes": {
        "twitch": {"Kappa": {"mixer": ":kappa"}},
        "mixer": {":mixerlove": {"twitch": "<3"}},
    },
}


class RecordingAdapter(PlatformAdapter):
    """In-memory adapter that records every send and clear."""

    def __init__(self, name, config, *, fail_channels=(), delay=0.0, queue_size=128):
        super().__init__(name, config, queue_size=queue_size)
        self.sent = []
        self.cleared = []
        self.fail_channels = set(fail_channels)
        self.delay = delay

    async def start(self):
        self._running = True

    async def stop(self):
        self._running = False

    async def send(self, channel, text):
        if self.delay:
            await asyncio.sleep(self.delay)
        if channel in self.fail_channels:
            raise ConnectionError(f"{channel} unreachable")
        self.sent.append((channel, text))

    async def clear(self, channel):
        self.cleared.append(channel)


@pytest.fixture
def config_data():
    import copy

    return copy.deepcopy(CONFIG_DATA)


@pytest.fixture
def relay_config(config_data):
    return RelayConfig.model_validate(config_data)


@pytest.fixture
def context(relay_config):
    return RelayContext(config=relay_config)


@pytest.fixture
def router(context, relay_config):
    return RelayRouter(context, EventFormatter(relay_config), EmoteTranslator(relay_config.emotes))


@pytest.fixture
def adapters(relay_config):
    return {
        name: RecordingAdapter(name, platform)
        for name, platform in relay_config.platforms.items()
    }


def twitch_chat(text, channel="#streamer", user="viewer", display_name=None):
    return PlainMessage.from_text(
        text,
        platform="twitch",
        channel=channel,
        user=user,
        display_name=display_name or user.capitalize(),
    )


def mixer_chat(text, user="mixfan"):
    return PlainMessage.from_text(
        text,
        platform="mixer",
        channel="streamer",
        user=user,
        display_name=user,
    )
