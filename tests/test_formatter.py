"""Tests for event rendering."""

import logging

import pytest

from lutra.errors import UnknownEventKindError
from lutra.events import (
    ActionMessage,
    Attribution,
    ClearChat,
    PlainMessage,
    PollEnd,
    PollStart,
    Segment,
    Skill,
)
from lutra.formatting.formatter import EventFormatter


@pytest.fixture
def formatter(relay_config):
    return EventFormatter(relay_config)


def _mixer_message(*segments, skill=None, cls=PlainMessage):
    return cls(
        platform="mixer", channel="streamer", user="ann", display_name="Ann",
        segments=tuple(segments), skill=skill,
    )


def test_attribution_exact_text(formatter):
    event = Attribution(
        platform="mixer", channel="streamer", user="Ann", display_name="Ann",
        skill=Skill(name="Confetti", cost=100, currency="gems"),
    )
    assert formatter.format(event, coop_active=False) == "Ann used a skill on Mixer: Confetti (100 gems)"


def test_plain_message_short_tag(formatter):
    event = _mixer_message(Segment("text", "hello"))
    assert formatter.format(event, coop_active=False) == "Ann: hello [M]"


def test_plain_message_coop_tag(formatter):
    event = PlainMessage.from_text(
        "hello", platform="twitch", channel="#friend", user="bob", display_name="Bob",
    )
    assert formatter.format(event, coop_active=True) == "Bob: hello [friend@Twitch]"


def test_action_uses_space_separator(formatter):
    event = _mixer_message(Segment("text", "dances"), cls=ActionMessage)
    assert formatter.format(event, coop_active=False) == "Ann dances [M]"


def test_segments_rendered_by_kind(formatter):
    event = _mixer_message(
        Segment("text", "look "),
        Segment("emoticon", ":)"),
        Segment("text", " at "),
        Segment("link", "mixer.com", url="https://mixer.com"),
        Segment("text", " "),
        Segment("tag", "@bob"),
    )
    assert formatter.format(event, coop_active=False) == "Ann: look :) at https://mixer.com @bob [M]"


def test_sticker_message(formatter):
    event = _mixer_message(
        Segment("image", "Otter Hug"),
        skill=Skill("Otter Hug", 200, "sparks"),
    )
    assert formatter.format(event, coop_active=False) == (
        "Ann used a sticker on Mixer: Otter Hug (200 sparks) [M]"
    )


def test_unknown_segment_skipped(formatter, caplog):
    event = _mixer_message(Segment("text", "a"), Segment("hologram", "zzz"), Segment("text", "b"))
    with caplog.at_level(logging.WARNING, logger="lutra.formatting.formatter"):
        assert formatter.format(event, coop_active=False) == "Ann: ab [M]"
    assert "hologram" in caplog.text


def test_poll_start(formatter):
    event = PollStart(
        platform="mixer", channel="streamer", display_name="Streamer",
        question="Best otter?", answers=("Sea", "River", "Giant"), duration_ms=29500,
    )
    assert formatter.format(event, coop_active=False) == (
        "Streamer started a poll on Mixer: Best otter? (30s) Options: Sea, River, Giant."
    )


def test_poll_end_single_winner(formatter):
    event = PollEnd(
        platform="mixer", channel="streamer", question="Best otter?",
        responses={"A": 7}, voters=7,
    )
    assert formatter.format(event, coop_active=False) == (
        "Poll ended on Mixer: Best otter? Winner: A with 7 votes (7 voters)"
    )


def test_poll_end_tie(formatter):
    event = PollEnd(
        platform="mixer", channel="streamer", question="Best otter?",
        responses={"A": 3, "B": 5, "C": 5}, voters=13,
    )
    assert formatter.format(event, coop_active=False) == (
        "Poll ended on Mixer: Best otter? It's a tie between B, C with 5 votes each (13 voters)"
    )


def test_poll_end_without_votes(formatter):
    event = PollEnd(platform="mixer", channel="streamer", question="Q?", responses={}, voters=0)
    assert formatter.format(event, coop_active=False) == "Poll ended on Mixer: Q? No votes were cast (0 voters)"


def test_unformattable_event_raises(formatter):
    with pytest.raises(UnknownEventKindError):
        formatter.format(ClearChat(platform="mixer", channel="streamer"), coop_active=False)


def test_sticker_after_text_is_spaced(formatter):
    skill = Skill("Otter Hug", 200, "sparks")
    joined = _mixer_message(Segment("text", "look"), Segment("image", "Otter Hug"), skill=skill)
    spaced = _mixer_message(Segment("text", "look "), Segment("image", "Otter Hug"), skill=skill)
    expected = "Ann look used a sticker on Mixer: Otter Hug (200 sparks) [M]"
    assert formatter.format(joined, coop_active=False) == expected
    assert formatter.format(spaced, coop_active=False) == expected
