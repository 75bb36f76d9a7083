"""ServiceResult and ServiceError: the contract for CLI-facing operations.

INVARIANT: Every operation exposed to the command layer returns
ServiceResult; sync failures surface as ``ok=False`` with a structured
error, never as an exception crossing into the CLI.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for CLI-facing operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"local_show"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
