"""Poll result helpers."""

from __future__ import annotations

from typing import Mapping


def highest_value(responses: Mapping[str, int]) -> int:
    """Return the highest vote count in *responses*, or ``0`` when empty."""
    return max(responses.values(), default=0)


def highest_value_keys(responses: Mapping[str, int]) -> list[str]:
    """Return every key whose value equals the maximum.

    Ties are preserved in mapping order rather than broken arbitrarily.
    An empty mapping has no winners.
    """
    if not responses:
        return []
    top = highest_value(responses)
    return [key for key, count in responses.items() if count == top]
