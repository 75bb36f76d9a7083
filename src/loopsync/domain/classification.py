"""Persistence gate: static durability classification of action tags.

Durable actions are user-originated edits that must reach local storage and
the remote store. System actions (UI focus, data freshly fetched from a live
external source, replication bookkeeping) must never by themselves trigger
an outbound write.
"""

from __future__ import annotations

from enum import StrEnum

from loopsync.domain.actions import ActionType


class Durability(StrEnum):
    """Classification of an action tag."""

    DURABLE = "durable"
    SYSTEM = "system"


_SYSTEM_TAGS = frozenset(
    {
        # live external reads
        ActionType.SET_HEALTH_SUMMARY,
        ActionType.SET_HEALTH_LOADING,
        ActionType.SET_HEALTH_ERROR,
        ActionType.SET_CALENDAR_EVENTS,
        ActionType.SET_CALENDAR_CALENDARS,
        ActionType.SET_CALENDAR_LOADING,
        ActionType.SET_CALENDAR_ERROR,
        # ui
        ActionType.SET_ACTIVE_TAB,
        ActionType.SELECT_LOOP,
        ActionType.SET_VIEW_MODE,
        ActionType.OPEN_MODAL,
        ActionType.CLOSE_MODAL,
        # replication
        ActionType.HYDRATE,
        ActionType.RESET_STATE,
    }
)

ACTION_DURABILITY: dict[ActionType, Durability] = {
    tag: Durability.SYSTEM if tag in _SYSTEM_TAGS else Durability.DURABLE for tag in ActionType
}

# System actions that still refresh the local durable copy.
LOCAL_MIRROR_TAGS = frozenset({ActionType.HYDRATE, ActionType.RESET_STATE})


def classify(tag: ActionType | str) -> Durability:
    """Return the durability of *tag*. Unknown tags are SYSTEM."""
    try:
        action_type = ActionType(tag)
    except ValueError:
        return Durability.SYSTEM
    return ACTION_DURABILITY.get(action_type, Durability.SYSTEM)


def is_durable(tag: ActionType | str) -> bool:
    return classify(tag) is Durability.DURABLE


def mirrors_locally(tag: ActionType | str) -> bool:
    """Whether dispatching *tag* should rewrite the local durable store."""
    return is_durable(tag) or tag in LOCAL_MIRROR_TAGS


def validate_classification() -> None:
    """Check that every action tag has an explicit classification.

    Raises:
        ValueError: If a tag is missing from :data:`ACTION_DURABILITY`.
    """
    missing = sorted(str(tag) for tag in ActionType if tag not in ACTION_DURABILITY)
    if missing:
        msg = f"Action tags without a durability classification: {missing}"
        raise ValueError(msg)
