"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, loopsync.toml only contains
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from loopsync.infrastructure.local_store import DEFAULT_STORAGE_KEY


class SyncConfig(BaseModel):
    """[sync] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    debounce_seconds: float = Field(default=1.0, ge=0.0)
    upload_local_when_remote_empty: bool = True


class LocalConfig(BaseModel):
    """[local] section."""

    model_config = {"frozen": True}

    path: str = ".loopsync/local.db"
    key: str = DEFAULT_STORAGE_KEY


class RemoteConfig(BaseModel):
    """[remote] section."""

    model_config = {"frozen": True}

    path: str = ".loopsync/remote.db"
    latency: float = Field(default=0.0, ge=0.0)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    entry_points: bool = True
