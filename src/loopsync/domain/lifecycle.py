"""Sync session phases and their transition map.

A session moves ``no_identity -> loading -> subscribed -> closed``; a
session may also be closed while still loading (identity switched or
signed out mid-load). Closed is terminal: a returning identity gets a new
session.
"""

from __future__ import annotations

from enum import StrEnum


class SyncPhase(StrEnum):
    """Phase of the sync lifecycle for one identity."""

    NO_IDENTITY = "no_identity"
    LOADING = "loading"
    SUBSCRIBED = "subscribed"
    CLOSED = "closed"


class LoadOutcome(StrEnum):
    """Result of a session's one-time initial load."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    UPLOADED = "uploaded"


PHASE_TRANSITIONS: dict[str, list[str]] = {
    "no_identity": ["loading", "closed"],
    "loading": ["subscribed", "closed"],
    "subscribed": ["closed"],
    "closed": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = PHASE_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed
