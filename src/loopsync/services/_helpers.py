"""Shared helper functions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def now_iso() -> str:
    """Current UTC time as standard ISO 8601."""
    return datetime.now(UTC).isoformat()


def summarize_domains(data: dict[str, Any]) -> dict[str, int]:
    """Per-domain item counts for display.

    Lists count their length; mappings count the items of their list fields.

    Examples:
        >>> summarize_domains({"projects": [{"id": "p1"}], "tasks": {"items": [1, 2], "today_stack": [1]}})
        {'projects': 1, 'tasks': 3}
        >>> summarize_domains({"user": {"profile": None}})
        {'user': 0}
    """
    summary: dict[str, int] = {}
    for name, value in data.items():
        if isinstance(value, list):
            summary[name] = len(value)
        elif isinstance(value, dict):
            summary[name] = sum(len(v) for v in value.values() if isinstance(v, list))
        else:
            summary[name] = 0
    return summary
