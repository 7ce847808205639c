"""Tests for relay routing decisions."""

import pytest

from lutra.errors import UnknownOriginError
from lutra.events import (
    ActionMessage,
    Attribution,
    ClearChat,
    CoopCommand,
    CoopControl,
    PlainMessage,
    PollEnd,
    PollStart,
    RoutingTarget,
    Skill,
)

from conftest import mixer_chat, twitch_chat


def _targets(deliveries):
    return {d.target for d in deliveries}


def _start_coop(router):
    return router.route(CoopControl(
        platform="twitch", channel="#streamer", user="streamer", command=CoopCommand.START,
    ))


# ---------------------------------------------------------------------------
# Plain messages
# ---------------------------------------------------------------------------


def test_twitch_message_goes_to_mixer_default(router):
    deliveries = router.route(twitch_chat("hello"))
    assert len(deliveries) == 1
    assert deliveries[0].target == RoutingTarget("mixer", "streamer")
    assert deliveries[0].text == "Viewer: hello [T]"


def test_mixer_message_goes_to_twitch_default(router):
    deliveries = router.route(mixer_chat("hi all"))
    assert _targets(deliveries) == {RoutingTarget("twitch", "#streamer")}
    assert deliveries[0].text == "mixfan: hi all [M]"


def test_message_carries_short_tag_when_coop_inactive(router):
    for delivery in router.route(twitch_chat("yo")):
        assert delivery.text.endswith(" [T]")


def test_message_names_sub_channel_when_coop_active(router):
    _start_coop(router)
    deliveries = router.route(twitch_chat("yo", channel="#friend"))
    assert deliveries
    for delivery in deliveries:
        assert delivery.text.endswith(" [friend@Twitch]")


def test_action_message_routes_like_chat(router):
    event = ActionMessage.from_text(
        "waves", platform="twitch", channel="#streamer", user="viewer", display_name="Viewer",
    )
    deliveries = router.route(event)
    assert [d.text for d in deliveries] == ["Viewer waves [T]"]


def test_emotes_translated_per_destination(router):
    deliveries = router.route(twitch_chat("nice Kappa"))
    assert deliveries[0].text == "Viewer: nice :kappa [T]"


def test_unknown_origin_raises(router):
    event = PlainMessage.from_text("hi", platform="youtube", channel="x", user="someone")
    with pytest.raises(UnknownOriginError):
        router.route(event)


# ---------------------------------------------------------------------------
# Suppression
# ---------------------------------------------------------------------------


def test_self_echo_never_routed(router):
    assert router.route(twitch_chat("relayed", user="lutrabot")) == []
    assert router.route(mixer_chat("relayed", user="MixBot")) == []


def test_secondary_channel_dropped_while_coop_inactive(router):
    assert router.route(twitch_chat("hello", channel="#friend")) == []


def test_gif_skill_attribution_dropped(router):
    event = Attribution(
        platform="mixer", channel="streamer", user="ann", display_name="Ann",
        skill=Skill("Party", 50, "sparks", kind="gif"),
    )
    assert router.route(event) == []


# ---------------------------------------------------------------------------
# Coop
# ---------------------------------------------------------------------------


def test_startcoop_from_non_primary_is_ignored(router, context):
    deliveries = router.route(CoopControl(
        platform="twitch", channel="#streamer", user="friend", command=CoopCommand.START,
    ))
    assert deliveries == []
    assert context.session.coop_active is False


def test_startcoop_from_primary_links_and_announces(router, context):
    deliveries = _start_coop(router)
    assert context.session.coop_active is True
    assert len(deliveries) == 3
    assert _targets(deliveries) == {
        RoutingTarget("twitch", "#streamer"),
        RoutingTarget("twitch", "#friend"),
        RoutingTarget("mixer", "streamer"),
    }
    texts = {d.target.channel: d.text for d in deliveries}
    assert texts["#streamer"] == "TwitchUnity Coop chat linked with https://twitch.tv/friend lordafSun"
    assert texts["#friend"] == "lordafSun Coop chat linked with https://twitch.tv/streamer TwitchUnity"
    assert texts["streamer"] == ":mixerlove Coop chat linked with https://twitch.tv/friend"


def test_startcoop_twice_announces_once(router):
    assert len(_start_coop(router)) == 3
    assert _start_coop(router) == []


def test_endcoop_accepted_from_secondary(router, context):
    _start_coop(router)
    deliveries = router.route(CoopControl(
        platform="twitch", channel="#friend", user="friend", command=CoopCommand.END,
    ))
    assert context.session.coop_active is False
    assert len(deliveries) == 3
    assert all("Coop chat ended" in d.text for d in deliveries)


def test_endcoop_from_stranger_is_ignored(router, context):
    _start_coop(router)
    deliveries = router.route(CoopControl(
        platform="twitch", channel="#streamer", user="randomviewer", command=CoopCommand.END,
    ))
    assert deliveries == []
    assert context.session.coop_active is True


def test_endcoop_while_inactive_is_ignored(router):
    assert router.route(CoopControl(
        platform="twitch", channel="#streamer", user="streamer", command=CoopCommand.END,
    )) == []


def test_coop_control_on_counterpart_is_ignored(router, context):
    deliveries = router.route(CoopControl(
        platform="mixer", channel="streamer", user="streamer", command=CoopCommand.START,
    ))
    assert deliveries == []
    assert context.session.coop_active is False


def test_coop_symmetry_primary_to_secondary(router):
    _start_coop(router)
    targets = _targets(router.route(twitch_chat("hi", channel="#streamer")))
    assert RoutingTarget("twitch", "#friend") in targets
    assert RoutingTarget("twitch", "#streamer") not in targets
    assert RoutingTarget("mixer", "streamer") in targets


def test_coop_symmetry_secondary_to_primary(router):
    _start_coop(router)
    targets = _targets(router.route(twitch_chat("hi", channel="#friend")))
    assert RoutingTarget("twitch", "#streamer") in targets
    assert RoutingTarget("twitch", "#friend") not in targets
    assert RoutingTarget("mixer", "streamer") in targets


def test_coop_mixer_message_reaches_both_coop_channels(router):
    _start_coop(router)
    deliveries = router.route(mixer_chat("hey :mixerlove"))
    assert _targets(deliveries) == {
        RoutingTarget("twitch", "#streamer"),
        RoutingTarget("twitch", "#friend"),
    }
    assert all(d.text == "mixfan: hey <3 [streamer@Mixer]" for d in deliveries)


def test_same_platform_copy_is_not_translated(router):
    _start_coop(router)
    deliveries = router.route(twitch_chat("Kappa", channel="#friend"))
    texts = {d.target: d.text for d in deliveries}
    assert texts[RoutingTarget("twitch", "#streamer")] == "Viewer: Kappa [friend@Twitch]"
    assert texts[RoutingTarget("mixer", "streamer")] == "Viewer: :kappa [friend@Twitch]"


# ---------------------------------------------------------------------------
# Polls and clears
# ---------------------------------------------------------------------------


def _poll_start():
    return PollStart(
        platform="mixer", channel="streamer", user="streamer", display_name="Streamer",
        question="Best otter?", answers=("Sea", "River"), duration_ms=30000,
    )


def test_poll_flicker_collapsed(router):
    starts = [router.route(_poll_start()) for _ in range(5)]
    end = router.route(PollEnd(
        platform="mixer", channel="streamer", question="Best otter?",
        responses={"Sea": 3, "River": 1}, voters=4,
    ))
    assert sum(1 for d in starts if d) == 1
    assert len(end) == 1
    assert end[0].text.startswith("Poll ended on Mixer")


def test_poll_end_without_start_dropped(router):
    assert router.route(PollEnd(
        platform="mixer", channel="streamer", question="q", responses={"a": 1}, voters=1,
    )) == []


def test_clear_chat_produces_clear_actions(router):
    deliveries = router.route(ClearChat(platform="mixer", channel="streamer", user="streamer"))
    assert len(deliveries) == 1
    assert deliveries[0].action == "clear"
    assert deliveries[0].target == RoutingTarget("twitch", "#streamer")


def test_startcoop_typed_in_secondary_by_primary_owner(router, context):
    deliveries = router.route(CoopControl(
        platform="twitch", channel="#friend", user="streamer", command=CoopCommand.START,
    ))
    assert context.session.coop_active is True
    assert len(deliveries) == 3


def test_clear_chat_skips_coop_partner_channel(router):
    _start_coop(router)
    deliveries = router.route(ClearChat(platform="twitch", channel="#streamer", user="streamer"))
    assert [(d.target, d.action) for d in deliveries] == [(RoutingTarget("mixer", "streamer"), "clear")]


def test_clear_chat_from_counterpart_reaches_both_coop_channels(router):
    _start_coop(router)
    deliveries = router.route(ClearChat(platform="mixer", channel="streamer", user="streamer"))
    assert _targets(deliveries) == {
        RoutingTarget("twitch", "#streamer"),
        RoutingTarget("twitch", "#friend"),
    }
