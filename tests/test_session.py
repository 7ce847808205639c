"""Tests for the coop and poll state machines."""

from lutra.relay.session import CoopState, PollState, SessionState


def test_initial_state():
    session = SessionState()
    assert session.coop is CoopState.INACTIVE
    assert session.coop_active is False
    assert session.poll_state("mixer") is PollState.IDLE


def test_enter_and_exit_coop():
    session = SessionState()
    assert session.enter_coop() is True
    assert session.coop_active is True
    assert session.exit_coop() is True
    assert session.coop_active is False


def test_illegal_coop_transitions_rejected():
    session = SessionState()
    assert session.exit_coop() is False
    session.enter_coop()
    assert session.enter_coop() is False
    assert session.coop_active is True


def test_poll_opens_once_and_closes_once():
    session = SessionState()
    assert session.open_poll("mixer") is True
    assert [session.open_poll("mixer") for _ in range(4)] == [False] * 4
    assert session.close_poll("mixer") is True
    assert session.close_poll("mixer") is False
    assert session.poll_state("mixer") is PollState.IDLE


def test_polls_tracked_per_platform():
    session = SessionState()
    session.open_poll("mixer")
    assert session.poll_state("twitch") is PollState.IDLE
    assert session.open_poll("twitch") is True


def test_poll_state_independent_of_coop():
    session = SessionState()
    session.open_poll("mixer")
    session.enter_coop()
    assert session.poll_state("mixer") is PollState.OPEN
    session.exit_coop()
    assert session.poll_state("mixer") is PollState.OPEN
