"""Snapshot: the durable partition plus version, as it crosses the network."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from loopsync.domain.state import DOMAIN_POLICIES, durable_partition


class Snapshot(BaseModel):
    """A versioned copy of the durable partition of the state tree.

    Attributes:
        data: Durable domains keyed by name.
        version: Monotonically increasing per-identity write counter.
        updated_at: ISO-8601 timestamp stamped by the remote store on write.
    """

    model_config = {"frozen": True}

    data: dict[str, Any] = Field(default_factory=dict)
    version: int = Field(default=0, ge=0)
    updated_at: str | None = None

    @classmethod
    def from_state(cls, state: dict[str, Any], version: int) -> Snapshot:
        return cls(data=durable_partition(state), version=version)

    def domains(self) -> list[str]:
        """Known domain names present in this snapshot, in table order."""
        return [name for name in DOMAIN_POLICIES if name in self.data]
