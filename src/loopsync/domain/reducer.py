"""The transition function ``(state, action) -> state``.

INVARIANT: :func:`reduce` is pure. It never performs I/O, never reads the
clock, and never mutates its input; every handler returns a new tree that
shares untouched domains with the previous one.

Handlers are looked up in :data:`_HANDLERS` by action tag. Collection
domains hold lists of dicts keyed by ``"id"``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loopsync.domain.actions import Action, ActionType
from loopsync.domain.errors import InvalidActionError
from loopsync.domain.state import build_default_state, merge_domains

State = dict[str, Any]
Handler = Callable[[State, Any], State]


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def _require_item(action_type: ActionType, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict) or "id" not in payload:
        msg = f"{action_type} requires a mapping payload with an 'id'"
        raise InvalidActionError(msg)
    return payload


def _require_id(action_type: ActionType, payload: Any) -> str:
    if isinstance(payload, dict):
        payload = payload.get("id")
    if not isinstance(payload, str) or not payload:
        msg = f"{action_type} requires an item id"
        raise InvalidActionError(msg)
    return payload


def _require_list(action_type: ActionType, payload: Any) -> list[Any]:
    if not isinstance(payload, list):
        msg = f"{action_type} requires a list payload"
        raise InvalidActionError(msg)
    return list(payload)


def _require_fields(action_type: ActionType, payload: Any, *fields: str) -> dict[str, Any]:
    if not isinstance(payload, dict) or any(f not in payload for f in fields):
        msg = f"{action_type} requires fields {list(fields)}"
        raise InvalidActionError(msg)
    return payload


# ---------------------------------------------------------------------------
# Copy-on-write primitives
# ---------------------------------------------------------------------------


def _set(state: State, domain: str, value: Any) -> State:
    return {**state, domain: value}


def _patch(state: State, domain: str, **fields: Any) -> State:
    return {**state, domain: {**state[domain], **fields}}


def _append(items: list[dict[str, Any]], item: dict[str, Any]) -> list[dict[str, Any]]:
    return [*items, dict(item)]


def _replace(items: list[dict[str, Any]], item: dict[str, Any]) -> list[dict[str, Any]]:
    return [dict(item) if i.get("id") == item["id"] else i for i in items]


def _remove(items: list[dict[str, Any]], item_id: str) -> list[dict[str, Any]]:
    return [i for i in items if i.get("id") != item_id]


def _update_where(
    items: list[dict[str, Any]],
    item_id: str,
    **fields: Any,
) -> list[dict[str, Any]]:
    return [{**i, **fields} if i.get("id") == item_id else i for i in items]


# ---------------------------------------------------------------------------
# Generic collection handlers
# ---------------------------------------------------------------------------


def _list_ops(domain: str, key: str | None, kinds: dict[ActionType, str]) -> dict[ActionType, Handler]:
    """Build add/update/delete/set handlers for a list living at ``domain[key]``.

    With ``key=None`` the domain itself is the list.
    """

    def read(state: State) -> list[dict[str, Any]]:
        return state[domain] if key is None else state[domain][key]

    def write(state: State, items: list[dict[str, Any]]) -> State:
        if key is None:
            return _set(state, domain, items)
        return _patch(state, domain, **{key: items})

    handlers: dict[ActionType, Handler] = {}
    for action_type, kind in kinds.items():
        if kind == "set":

            def handler(state: State, payload: Any, _t: ActionType = action_type) -> State:
                return write(state, _require_list(_t, payload))

        elif kind == "add":

            def handler(state: State, payload: Any, _t: ActionType = action_type) -> State:
                return write(state, _append(read(state), _require_item(_t, payload)))

        elif kind == "update":

            def handler(state: State, payload: Any, _t: ActionType = action_type) -> State:
                return write(state, _replace(read(state), _require_item(_t, payload)))

        elif kind == "delete":

            def handler(state: State, payload: Any, _t: ActionType = action_type) -> State:
                return write(state, _remove(read(state), _require_id(_t, payload)))

        else:  # pragma: no cover - table is static
            msg = f"Unknown collection operation: {kind}"
            raise ValueError(msg)
        handlers[action_type] = handler
    return handlers


# ---------------------------------------------------------------------------
# Domain-specific handlers
# ---------------------------------------------------------------------------


def _set_user_profile(state: State, payload: Any) -> State:
    return _patch(state, "user", profile=payload)


def _set_prototype(state: State, payload: Any) -> State:
    return _patch(state, "user", prototype=payload)


def _complete_onboarding(state: State, _payload: Any) -> State:
    state = _patch(state, "user", onboarding_complete=True)
    modals = {**state["ui"]["modals"], "onboarding": False}
    return _patch(state, "ui", modals=modals)


def _reset_onboarding(state: State, _payload: Any) -> State:
    return _patch(state, "user", onboarding_complete=False, prototype=None, profile=None)


def _delete_task(state: State, payload: Any) -> State:
    task_id = _require_id(ActionType.DELETE_TASK, payload)
    tasks = state["tasks"]
    return _patch(
        state,
        "tasks",
        items=_remove(tasks["items"], task_id),
        today_stack=[t for t in tasks["today_stack"] if t != task_id],
    )


def _complete_task(state: State, payload: Any) -> State:
    task_id = _require_id(ActionType.COMPLETE_TASK, payload)
    completed_at = payload.get("completed_at") if isinstance(payload, dict) else None
    items = _update_where(
        state["tasks"]["items"], task_id, status="done", completed_at=completed_at
    )
    return _patch(state, "tasks", items=items)


def _uncomplete_task(state: State, payload: Any) -> State:
    task_id = _require_id(ActionType.UNCOMPLETE_TASK, payload)
    items = _update_where(state["tasks"]["items"], task_id, status="todo", completed_at=None)
    return _patch(state, "tasks", items=items)


def _set_today_stack(state: State, payload: Any) -> State:
    return _patch(state, "tasks", today_stack=_require_list(ActionType.SET_TODAY_STACK, payload))


def _delete_project(state: State, payload: Any) -> State:
    project_id = _require_id(ActionType.DELETE_PROJECT, payload)
    items = [
        {**t, "project_id": None} if t.get("project_id") == project_id else t
        for t in state["tasks"]["items"]
    ]
    state = _set(state, "projects", _remove(state["projects"], project_id))
    return _patch(state, "tasks", items=items)


def _archive_project(state: State, payload: Any) -> State:
    project_id = _require_id(ActionType.ARCHIVE_PROJECT, payload)
    archived_at = payload.get("archived_at") if isinstance(payload, dict) else None
    projects = _update_where(
        state["projects"], project_id, archived=True, updated_at=archived_at
    )
    return _set(state, "projects", projects)


def _delete_label(state: State, payload: Any) -> State:
    label_id = _require_id(ActionType.DELETE_LABEL, payload)
    items = [
        {**t, "labels": [lid for lid in t["labels"] if lid != label_id]}
        if label_id in (t.get("labels") or [])
        else t
        for t in state["tasks"]["items"]
    ]
    state = _set(state, "labels", _remove(state["labels"], label_id))
    return _patch(state, "tasks", items=items)


def _add_routine_completion(state: State, payload: Any) -> State:
    completion = _require_item(ActionType.ADD_ROUTINE_COMPLETION, payload)
    completions = _append(state["routines"]["completions"], completion)
    return _patch(state, "routines", completions=completions)


def _complete_habit(state: State, payload: Any) -> State:
    data = _require_fields(ActionType.COMPLETE_HABIT, payload, "habit_id", "date")
    habit_id, date = data["habit_id"], data["date"]
    completion = {
        "id": data.get("id") or f"hc_{habit_id}_{date}",
        "habit_id": habit_id,
        "date": date,
        "completed_at": data.get("completed_at"),
        "notes": data.get("notes"),
    }
    items = []
    for habit in state["habits"]["items"]:
        if habit.get("id") == habit_id:
            streak = habit.get("streak", 0) + 1
            habit = {
                **habit,
                "streak": streak,
                "longest_streak": max(habit.get("longest_streak", 0), streak),
                "total_completions": habit.get("total_completions", 0) + 1,
            }
        items.append(habit)
    completions = [*state["habits"]["completions"], completion]
    return _patch(state, "habits", items=items, completions=completions)


def _uncomplete_habit(state: State, payload: Any) -> State:
    data = _require_fields(ActionType.UNCOMPLETE_HABIT, payload, "habit_id", "date")
    completions = [
        c
        for c in state["habits"]["completions"]
        if not (c.get("habit_id") == data["habit_id"] and c.get("date") == data["date"])
    ]
    return _patch(state, "habits", completions=completions)


def _set_day_types(state: State, payload: Any) -> State:
    day_types = _require_list(ActionType.SET_DAY_TYPES, payload)
    active = state["preferences"]["active_day_type"]
    if active is not None and active not in {d.get("id") for d in day_types}:
        active = None
    return _patch(state, "preferences", day_types=day_types, active_day_type=active)


def _set_active_day_type(state: State, payload: Any) -> State:
    if payload is not None:
        known = {d.get("id") for d in state["preferences"]["day_types"]}
        if payload not in known:
            msg = f"Unknown day type: {payload!r}"
            raise InvalidActionError(msg)
    return _patch(state, "preferences", active_day_type=payload)


def _set_timezone(state: State, payload: Any) -> State:
    return _patch(state, "preferences", timezone=payload)


def _set_health_summary(state: State, payload: Any) -> State:
    return _patch(state, "health", summary=payload, is_loading=False, error=None)


def _set_health_loading(state: State, payload: Any) -> State:
    return _patch(state, "health", is_loading=bool(payload))


def _set_health_error(state: State, payload: Any) -> State:
    return _patch(state, "health", error=payload, is_loading=False)


def _set_calendar_events(state: State, payload: Any) -> State:
    events = _require_list(ActionType.SET_CALENDAR_EVENTS, payload)
    return _patch(state, "calendar", events=events, is_loading=False, error=None)


def _set_calendar_calendars(state: State, payload: Any) -> State:
    calendars = _require_list(ActionType.SET_CALENDAR_CALENDARS, payload)
    return _patch(state, "calendar", calendars=calendars)


def _set_calendar_loading(state: State, payload: Any) -> State:
    return _patch(state, "calendar", is_loading=bool(payload))


def _set_calendar_error(state: State, payload: Any) -> State:
    return _patch(state, "calendar", error=payload, is_loading=False)


def _set_active_tab(state: State, payload: Any) -> State:
    return _patch(state, "ui", active_tab=payload)


def _select_loop(state: State, payload: Any) -> State:
    return _patch(state, "ui", selected_loop=payload)


def _set_view_mode(state: State, payload: Any) -> State:
    if payload not in ("visual", "kanban"):
        msg = f"Unknown view mode: {payload!r}"
        raise InvalidActionError(msg)
    return _patch(state, "ui", view_mode=payload)


def _open_modal(state: State, payload: Any) -> State:
    data = _require_fields(ActionType.OPEN_MODAL, payload, "modal", "value")
    modals = state["ui"]["modals"]
    if data["modal"] not in modals:
        msg = f"Unknown modal: {data['modal']!r}"
        raise InvalidActionError(msg)
    return _patch(state, "ui", modals={**modals, data["modal"]: data["value"]})


def _close_modal(state: State, payload: Any) -> State:
    modals = state["ui"]["modals"]
    if payload not in modals:
        msg = f"Unknown modal: {payload!r}"
        raise InvalidActionError(msg)
    closed = False if isinstance(modals[payload], bool) else None
    return _patch(state, "ui", modals={**modals, payload: closed})


def _hydrate(state: State, payload: Any) -> State:
    if not isinstance(payload, dict):
        msg = f"{ActionType.HYDRATE} requires a mapping payload"
        raise InvalidActionError(msg)
    return merge_domains(state, payload)


def _reset_state(_state: State, _payload: Any) -> State:
    return build_default_state()


_HANDLERS: dict[ActionType, Handler] = {
    ActionType.SET_USER_PROFILE: _set_user_profile,
    ActionType.SET_PROTOTYPE: _set_prototype,
    ActionType.COMPLETE_ONBOARDING: _complete_onboarding,
    ActionType.RESET_ONBOARDING: _reset_onboarding,
    **_list_ops(
        "tasks",
        "items",
        {
            ActionType.SET_TASKS: "set",
            ActionType.ADD_TASK: "add",
            ActionType.UPDATE_TASK: "update",
        },
    ),
    ActionType.DELETE_TASK: _delete_task,
    ActionType.COMPLETE_TASK: _complete_task,
    ActionType.UNCOMPLETE_TASK: _uncomplete_task,
    ActionType.SET_TODAY_STACK: _set_today_stack,
    **_list_ops(
        "projects",
        None,
        {
            ActionType.SET_PROJECTS: "set",
            ActionType.ADD_PROJECT: "add",
            ActionType.UPDATE_PROJECT: "update",
        },
    ),
    ActionType.DELETE_PROJECT: _delete_project,
    ActionType.ARCHIVE_PROJECT: _archive_project,
    **_list_ops(
        "labels",
        None,
        {ActionType.ADD_LABEL: "add", ActionType.UPDATE_LABEL: "update"},
    ),
    ActionType.DELETE_LABEL: _delete_label,
    **_list_ops(
        "routines",
        "items",
        {
            ActionType.ADD_ROUTINE: "add",
            ActionType.UPDATE_ROUTINE: "update",
            ActionType.DELETE_ROUTINE: "delete",
        },
    ),
    ActionType.ADD_ROUTINE_COMPLETION: _add_routine_completion,
    **_list_ops(
        "habits",
        "items",
        {
            ActionType.ADD_HABIT: "add",
            ActionType.UPDATE_HABIT: "update",
            ActionType.DELETE_HABIT: "delete",
        },
    ),
    ActionType.COMPLETE_HABIT: _complete_habit,
    ActionType.UNCOMPLETE_HABIT: _uncomplete_habit,
    **_list_ops(
        "notes",
        None,
        {
            ActionType.ADD_NOTE: "add",
            ActionType.UPDATE_NOTE: "update",
            ActionType.DELETE_NOTE: "delete",
        },
    ),
    **_list_ops(
        "journal",
        None,
        {
            ActionType.ADD_JOURNAL_ENTRY: "add",
            ActionType.UPDATE_JOURNAL_ENTRY: "update",
            ActionType.DELETE_JOURNAL_ENTRY: "delete",
        },
    ),
    ActionType.SET_DAY_TYPES: _set_day_types,
    ActionType.SET_ACTIVE_DAY_TYPE: _set_active_day_type,
    ActionType.SET_TIMEZONE: _set_timezone,
    **_list_ops(
        "media",
        "entries",
        {
            ActionType.SET_MEDIA_ENTRIES: "set",
            ActionType.ADD_MEDIA_ENTRY: "add",
            ActionType.UPDATE_MEDIA_ENTRY: "update",
            ActionType.DELETE_MEDIA_ENTRY: "delete",
        },
    ),
    ActionType.SET_HEALTH_SUMMARY: _set_health_summary,
    ActionType.SET_HEALTH_LOADING: _set_health_loading,
    ActionType.SET_HEALTH_ERROR: _set_health_error,
    ActionType.SET_CALENDAR_EVENTS: _set_calendar_events,
    ActionType.SET_CALENDAR_CALENDARS: _set_calendar_calendars,
    ActionType.SET_CALENDAR_LOADING: _set_calendar_loading,
    ActionType.SET_CALENDAR_ERROR: _set_calendar_error,
    ActionType.SET_ACTIVE_TAB: _set_active_tab,
    ActionType.SELECT_LOOP: _select_loop,
    ActionType.SET_VIEW_MODE: _set_view_mode,
    ActionType.OPEN_MODAL: _open_modal,
    ActionType.CLOSE_MODAL: _close_modal,
    ActionType.HYDRATE: _hydrate,
    ActionType.RESET_STATE: _reset_state,
}


def reduce(state: State, action: Action) -> State:
    """Apply *action* to *state* and return the next state.

    Raises:
        InvalidActionError: If the payload does not fit the action tag.
    """
    handler = _HANDLERS.get(action.type)
    if handler is None:
        return state
    return handler(state, action.payload)


def unhandled_action_types() -> list[ActionType]:
    """Action tags with no registered handler (expected to be empty)."""
    return [t for t in ActionType if t not in _HANDLERS]
