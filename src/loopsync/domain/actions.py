"""Action tags and the Action record.

The set of tags is closed: every intent the state container understands is
an :class:`ActionType` member. Factory helpers stamp any timestamp a
transition needs into the payload, so the reducer itself stays pure.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class ActionType(StrEnum):
    """Closed set of action tags."""

    # --- user ---
    SET_USER_PROFILE = "SET_USER_PROFILE"
    SET_PROTOTYPE = "SET_PROTOTYPE"
    COMPLETE_ONBOARDING = "COMPLETE_ONBOARDING"
    RESET_ONBOARDING = "RESET_ONBOARDING"

    # --- tasks ---
    SET_TASKS = "SET_TASKS"
    ADD_TASK = "ADD_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    COMPLETE_TASK = "COMPLETE_TASK"
    UNCOMPLETE_TASK = "UNCOMPLETE_TASK"
    SET_TODAY_STACK = "SET_TODAY_STACK"

    # --- projects ---
    SET_PROJECTS = "SET_PROJECTS"
    ADD_PROJECT = "ADD_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    ARCHIVE_PROJECT = "ARCHIVE_PROJECT"

    # --- labels ---
    ADD_LABEL = "ADD_LABEL"
    UPDATE_LABEL = "UPDATE_LABEL"
    DELETE_LABEL = "DELETE_LABEL"

    # --- routines ---
    ADD_ROUTINE = "ADD_ROUTINE"
    UPDATE_ROUTINE = "UPDATE_ROUTINE"
    DELETE_ROUTINE = "DELETE_ROUTINE"
    ADD_ROUTINE_COMPLETION = "ADD_ROUTINE_COMPLETION"

    # --- habits ---
    ADD_HABIT = "ADD_HABIT"
    UPDATE_HABIT = "UPDATE_HABIT"
    DELETE_HABIT = "DELETE_HABIT"
    COMPLETE_HABIT = "COMPLETE_HABIT"
    UNCOMPLETE_HABIT = "UNCOMPLETE_HABIT"

    # --- notes ---
    ADD_NOTE = "ADD_NOTE"
    UPDATE_NOTE = "UPDATE_NOTE"
    DELETE_NOTE = "DELETE_NOTE"

    # --- journal ---
    ADD_JOURNAL_ENTRY = "ADD_JOURNAL_ENTRY"
    UPDATE_JOURNAL_ENTRY = "UPDATE_JOURNAL_ENTRY"
    DELETE_JOURNAL_ENTRY = "DELETE_JOURNAL_ENTRY"

    # --- preferences / day types ---
    SET_DAY_TYPES = "SET_DAY_TYPES"
    SET_ACTIVE_DAY_TYPE = "SET_ACTIVE_DAY_TYPE"
    SET_TIMEZONE = "SET_TIMEZONE"

    # --- media ---
    SET_MEDIA_ENTRIES = "SET_MEDIA_ENTRIES"
    ADD_MEDIA_ENTRY = "ADD_MEDIA_ENTRY"
    UPDATE_MEDIA_ENTRY = "UPDATE_MEDIA_ENTRY"
    DELETE_MEDIA_ENTRY = "DELETE_MEDIA_ENTRY"

    # --- health (live external read) ---
    SET_HEALTH_SUMMARY = "SET_HEALTH_SUMMARY"
    SET_HEALTH_LOADING = "SET_HEALTH_LOADING"
    SET_HEALTH_ERROR = "SET_HEALTH_ERROR"

    # --- calendar (live external read) ---
    SET_CALENDAR_EVENTS = "SET_CALENDAR_EVENTS"
    SET_CALENDAR_CALENDARS = "SET_CALENDAR_CALENDARS"
    SET_CALENDAR_LOADING = "SET_CALENDAR_LOADING"
    SET_CALENDAR_ERROR = "SET_CALENDAR_ERROR"

    # --- ui ---
    SET_ACTIVE_TAB = "SET_ACTIVE_TAB"
    SELECT_LOOP = "SELECT_LOOP"
    SET_VIEW_MODE = "SET_VIEW_MODE"
    OPEN_MODAL = "OPEN_MODAL"
    CLOSE_MODAL = "CLOSE_MODAL"

    # --- replication ---
    HYDRATE = "HYDRATE"
    RESET_STATE = "RESET_STATE"


class Action(BaseModel):
    """A tagged intent with its payload."""

    model_config = {"frozen": True}

    type: ActionType
    payload: Any = None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


# --- Factories ---


def hydrate(partial: dict[str, Any]) -> Action:
    """Merge a (partial) snapshot into the state tree."""
    return Action(type=ActionType.HYDRATE, payload=partial)


def reset_state() -> Action:
    """Reset every domain to its default value."""
    return Action(type=ActionType.RESET_STATE)


def complete_task(task_id: str, *, at: str | None = None) -> Action:
    return Action(
        type=ActionType.COMPLETE_TASK,
        payload={"id": task_id, "completed_at": at or _now_iso()},
    )


def complete_habit(
    habit_id: str,
    date: str,
    *,
    notes: str | None = None,
    at: str | None = None,
) -> Action:
    return Action(
        type=ActionType.COMPLETE_HABIT,
        payload={
            "habit_id": habit_id,
            "date": date,
            "notes": notes,
            "completed_at": at or _now_iso(),
        },
    )


def parse_action(type_name: str, payload: Any = None) -> Action:
    """Build an Action from a tag name, accepting any case.

    Raises:
        ValueError: If *type_name* is not a known tag.
    """
    try:
        action_type = ActionType(type_name.upper())
    except ValueError:
        msg = f"Unknown action type: {type_name!r}"
        raise ValueError(msg) from None
    if action_type is ActionType.COMPLETE_TASK and isinstance(payload, str):
        return complete_task(payload)
    return Action(type=action_type, payload=payload)
