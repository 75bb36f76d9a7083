"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs:   CLI flags passed by Click
  2. Env vars:      ``LOOPSYNC_*`` prefix, ``__`` for nested sections
  3. TOML file:     ``loopsync.toml`` discovered via walk-up
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from loopsync.config.discovery import find_config
from loopsync.config.models import LocalConfig, PluginsConfig, RemoteConfig, SyncConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``loopsync.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class LoopsyncSettings(BaseSettings):
    """Unified settings for the loopsync CLI and composition root.

    Attributes:
        project_root: Directory relative paths resolve against (parent of
            ``loopsync.toml``, or CWD if no config was found).
        config_path: The TOML file in use, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "LOOPSYNC_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    sync: SyncConfig = Field(default_factory=SyncConfig)
    local: LocalConfig = Field(default_factory=LocalConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> LoopsyncSettings:
        """Construct settings from a CLI invocation.

        Discovers ``loopsync.toml`` via walk-up (or explicit *config_path*)
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(project_root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

    def resolve(self, path: str) -> Path:
        """Resolve a configured path against :attr:`project_root`."""
        if path == ":memory:":
            return Path(path)
        p = Path(path)
        return p if p.is_absolute() else self.project_root / p
