"""State tree domains and their persistence policies.

The state tree is a plain JSON-serializable dict keyed by domain name.
Each domain carries exactly one policy from :data:`DOMAIN_POLICIES`:

- ``merged``: persisted and synced; hydration shallow-merges incoming fields.
- ``replaced``: persisted and synced; hydration replaces the value wholesale.
- ``never_persisted``: always recomputed from defaults (live external reads).
- ``ui``: never persisted and never touched by hydration.

The table is checked against :func:`build_default_state` at startup so a new
domain cannot silently fall back to the wrong policy.
"""

from __future__ import annotations

import copy
from enum import StrEnum
from typing import Any

from loopsync.domain.errors import DomainPolicyError


class DomainPolicy(StrEnum):
    """How a domain behaves under persistence and hydration."""

    MERGED = "merged"
    REPLACED = "replaced"
    NEVER_PERSISTED = "never_persisted"
    UI = "ui"


DOMAIN_POLICIES: dict[str, DomainPolicy] = {
    "user": DomainPolicy.MERGED,
    "tasks": DomainPolicy.MERGED,
    "projects": DomainPolicy.REPLACED,
    "labels": DomainPolicy.REPLACED,
    "routines": DomainPolicy.MERGED,
    "habits": DomainPolicy.MERGED,
    "notes": DomainPolicy.REPLACED,
    "journal": DomainPolicy.REPLACED,
    "preferences": DomainPolicy.MERGED,
    "media": DomainPolicy.MERGED,
    "health": DomainPolicy.NEVER_PERSISTED,
    "calendar": DomainPolicy.NEVER_PERSISTED,
    "ui": DomainPolicy.UI,
}

DURABLE_POLICIES = frozenset({DomainPolicy.MERGED, DomainPolicy.REPLACED})

DEFAULT_DAY_TYPES: list[dict[str, Any]] = [
    {"id": "workday", "name": "Workday", "energy": "normal"},
    {"id": "weekend", "name": "Weekend", "energy": "normal"},
    {"id": "light", "name": "Light day", "energy": "low"},
    {"id": "travel", "name": "Travel", "energy": "low"},
]

_DEFAULT_STATE: dict[str, Any] = {
    "user": {
        "profile": None,
        "prototype": None,
        "onboarding_complete": False,
    },
    "tasks": {"items": [], "today_stack": []},
    "projects": [],
    "labels": [],
    "routines": {"items": [], "completions": []},
    "habits": {"items": [], "completions": []},
    "notes": [],
    "journal": [],
    "preferences": {
        "day_types": DEFAULT_DAY_TYPES,
        "active_day_type": None,
        "timezone": None,
    },
    "media": {"entries": []},
    "health": {"summary": None, "is_loading": False, "error": None},
    "calendar": {"events": [], "calendars": [], "is_loading": False, "error": None},
    "ui": {
        "active_tab": "today",
        "selected_loop": None,
        "view_mode": "visual",
        "modals": {
            "onboarding": False,
            "challenge_detail": None,
            "weekly_planning": False,
            "task_detail": None,
        },
    },
}


def build_default_state() -> dict[str, Any]:
    """Return a fresh default state tree (no structure shared between calls)."""
    return copy.deepcopy(_DEFAULT_STATE)


def default_domain(name: str) -> Any:
    """Return a fresh default value for a single domain."""
    return copy.deepcopy(_DEFAULT_STATE[name])


def validate_domain_policies(
    state: dict[str, Any] | None = None,
    policies: dict[str, DomainPolicy] | None = None,
) -> None:
    """Check that every domain has exactly one policy and vice versa.

    Merged domains must also default to a mapping, since hydration
    shallow-merges their fields.

    Raises:
        DomainPolicyError: If the table and the state tree disagree.
    """
    state = build_default_state() if state is None else state
    policies = DOMAIN_POLICIES if policies is None else policies

    missing = sorted(set(state) - set(policies))
    if missing:
        msg = f"Domains without a persistence policy: {missing}"
        raise DomainPolicyError(msg)

    orphaned = sorted(set(policies) - set(state))
    if orphaned:
        msg = f"Policies for unknown domains: {orphaned}"
        raise DomainPolicyError(msg)

    for name, policy in policies.items():
        if policy is DomainPolicy.MERGED and not isinstance(state[name], dict):
            msg = f"Merged domain {name!r} must default to a mapping"
            raise DomainPolicyError(msg)


def domains_with(*wanted: DomainPolicy) -> list[str]:
    """Domain names whose policy is one of *wanted*, in table order."""
    return [name for name, policy in DOMAIN_POLICIES.items() if policy in wanted]


def durable_partition(state: dict[str, Any]) -> dict[str, Any]:
    """Extract the persisted-and-synced part of *state*.

    This is the document that crosses the network and the one written to
    local durable storage. Never-persisted and UI domains are excluded.
    """
    return {
        name: copy.deepcopy(state[name])
        for name, policy in DOMAIN_POLICIES.items()
        if policy in DURABLE_POLICIES and name in state
    }


def merge_domains(current: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Apply the per-domain policy table to fold *incoming* into *current*.

    Returns a new tree; neither argument is mutated. Incoming keys that are
    not known domains are ignored.

    - never_persisted: reset to defaults regardless of *incoming*.
    - replaced: incoming value wholesale, or the default if absent/None.
    - merged: current fields overlaid with incoming fields; incoming
      ``None`` values count as absent.
    - ui: current value kept.
    """
    merged: dict[str, Any] = {}
    for name, policy in DOMAIN_POLICIES.items():
        value = incoming.get(name)
        if policy is DomainPolicy.NEVER_PERSISTED:
            merged[name] = default_domain(name)
        elif policy is DomainPolicy.REPLACED:
            merged[name] = copy.deepcopy(value) if value is not None else default_domain(name)
        elif policy is DomainPolicy.MERGED:
            base = current.get(name)
            if not isinstance(base, dict):
                base = default_domain(name)
            if isinstance(value, dict):
                overlay = {k: copy.deepcopy(v) for k, v in value.items() if v is not None}
                merged[name] = {**base, **overlay}
            else:
                merged[name] = base
        else:
            ui_value = current.get(name)
            merged[name] = ui_value if ui_value is not None else default_domain(name)
    return merged


def restore_state(saved: dict[str, Any] | None) -> dict[str, Any]:
    """Build the startup state tree from a locally saved snapshot.

    The saved value is folded over the defaults with the same policy table
    hydration uses, so never-persisted and UI domains always start fresh.
    """
    defaults = build_default_state()
    if not saved:
        return defaults
    return merge_domains(defaults, saved)


def has_user_data(state: dict[str, Any]) -> bool:
    """Whether the durable partition differs from a fresh install."""
    return durable_partition(state) != durable_partition(build_default_state())
