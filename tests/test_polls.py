"""Tests for poll winner computation."""

from lutra.formatting.polls import highest_value, highest_value_keys


def test_tie_keeps_every_winner():
    responses = {"A": 3, "B": 5, "C": 5}
    assert set(highest_value_keys(responses)) == {"B", "C"}
    assert highest_value(responses) == 5


def test_single_answer():
    responses = {"A": 7}
    assert highest_value_keys(responses) == ["A"]
    assert highest_value(responses) == 7


def test_winners_keep_mapping_order():
    assert highest_value_keys({"Z": 2, "A": 2, "M": 1}) == ["Z", "A"]


def test_empty_responses():
    assert highest_value_keys({}) == []
    assert highest_value({}) == 0
