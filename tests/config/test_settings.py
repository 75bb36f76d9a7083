"""Tests for LoopsyncSettings: unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from loopsync.config.discovery import CONFIG_ENV_VAR, CONFIG_FILENAME, find_config
from loopsync.config.settings import LoopsyncSettings


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = LoopsyncSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path
        assert settings.sync.enabled is True
        assert settings.sync.debounce_seconds == 1.0
        assert settings.sync.upload_local_when_remote_empty is True
        assert settings.local.key == "looops_app_state"
        assert settings.local.path == ".loopsync/local.db"
        assert settings.remote.latency == 0.0
        assert settings.plugins.entry_points is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = LoopsyncSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]

    def test_resolve_relative_and_memory(self, tmp_path: Path) -> None:
        settings = LoopsyncSettings.from_cli(project_root=tmp_path)
        assert settings.resolve(".loopsync/local.db") == tmp_path / ".loopsync" / "local.db"
        assert str(settings.resolve(":memory:")) == ":memory:"


class TestTomlSource:
    def test_sparse_override(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[sync]\ndebounce_seconds = 0.25\n[remote]\nlatency = 0.1\n")
        settings = LoopsyncSettings.from_cli(project_root=tmp_path)
        assert settings.sync.debounce_seconds == 0.25
        assert settings.sync.enabled is True
        assert settings.remote.latency == 0.1

    def test_root_from_config_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[local]\nkey = "custom"\n')
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        settings = LoopsyncSettings.from_cli()
        assert settings.project_root == tmp_path.resolve()
        assert settings.local.key == "custom"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "conf" / "mine.toml"
        custom.parent.mkdir()
        custom.write_text("[sync]\nenabled = false\n")
        settings = LoopsyncSettings.from_cli(config_path=str(custom), project_root=tmp_path)
        assert settings.sync.enabled is False
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[sync\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            LoopsyncSettings.from_cli(project_root=tmp_path)

    def test_negative_debounce_rejected(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[sync]\ndebounce_seconds = -1\n")
        with pytest.raises(Exception):
            LoopsyncSettings.from_cli(project_root=tmp_path)


class TestPriority:
    def test_cli_flags(self, tmp_path: Path) -> None:
        settings = LoopsyncSettings.from_cli(project_root=tmp_path, json_output=True, verbose=True)
        assert settings.json_output is True
        assert settings.verbose is True

    def test_env_over_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[sync]\ndebounce_seconds = 0.25\n")
        monkeypatch.setenv("LOOPSYNC_SYNC__DEBOUNCE_SECONDS", "2.5")
        settings = LoopsyncSettings.from_cli(project_root=tmp_path)
        assert settings.sync.debounce_seconds == 2.5


class TestFindConfig:
    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "x" / "y"
        child.mkdir(parents=True)
        assert find_config(child) == config_file

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "elsewhere.toml"
        custom.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))
        assert find_config(tmp_path) == custom

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.toml"))
        assert find_config(tmp_path) is None
