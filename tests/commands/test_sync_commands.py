"""Tests for the loopsync CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from loopsync.cli import cli

ADD_GARDEN = ["ADD_PROJECT", "-p", '{"id": "p1", "name": "Garden"}']


def _json(result) -> dict:
    return json.loads(result.output)


class TestRoot:
    def test_no_command_shows_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "dispatch" in result.output
        assert "local" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "loopsync" in result.output

    def test_examples_flag(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["dispatch", "--examples"])
        assert result.exit_code == 0
        assert "loopsync dispatch alice" in result.output


@pytest.mark.usefixtures("_isolated_project")
class TestDispatch:
    def test_first_write_is_version_one(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "dispatch", "alice", *ADD_GARDEN])
        assert result.exit_code == 0, result.output
        data = _json(result)
        assert data["ok"] is True
        assert data["op"] == "dispatch"
        assert data["data"]["load_outcome"] == "not_found"
        assert data["data"]["applied"] == 1
        assert data["data"]["version"] == 1
        assert data["data"]["written"] is True

    def test_versions_increase_across_runs(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        result = cli_runner.invoke(cli, ["--json", "dispatch", "alice", "ADD_NOTE", "-p", '{"id": "n1"}'])
        data = _json(result)["data"]
        assert data["load_outcome"] == "loaded"
        assert data["loaded_version"] == 1
        assert data["version"] == 2

    def test_ui_only_actions_do_not_write(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "dispatch", "alice", "set_active_tab", "-p", "habits"])
        data = _json(result)["data"]
        assert data["written"] is False
        assert data["version"] == 0

    def test_bare_string_payload(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            ["--json", "dispatch", "alice", "ADD_TASK", "COMPLETE_TASK", "-p", '{"id": "t1"}', "-p", "t1"],
        )
        assert result.exit_code == 0, result.output
        assert _json(result)["data"]["applied"] == 2

    def test_unknown_action(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "dispatch", "alice", "LAUNCH_ROCKET"])
        assert result.exit_code == 1
        data = _json(result)
        assert data["ok"] is False
        assert data["error"]["code"] == "INVALID_ACTION"

    def test_invalid_payload(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["dispatch", "alice", "SET_VIEW_MODE", "-p", "grid"])
        assert result.exit_code == 1
        assert "Unknown view mode" in result.output

    def test_too_many_payloads(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["dispatch", "alice", "ADD_NOTE", "-p", "{}", "-p", "{}"])
        assert result.exit_code == 2

    def test_quiet_prints_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "dispatch", "alice", *ADD_GARDEN])
        assert result.exit_code == 0
        assert result.output.strip() == "1"

    def test_sync_disabled(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "loopsync.toml").write_text("[sync]\nenabled = false\n")
        result = cli_runner.invoke(cli, ["--json", "dispatch", "alice", *ADD_GARDEN])
        assert result.exit_code == 0
        data = _json(result)
        assert data["data"]["written"] is False
        assert any("disabled" in w for w in data["warnings"])

    def test_other_identity_never_inherits_local_data(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", "ADD_PROJECT", "-p", '{"id": "p1", "name": "alice-secret"}'])
        result = cli_runner.invoke(cli, ["--json", "dispatch", "bob", "SET_TIMEZONE", "-p", '"UTC"'])
        assert result.exit_code == 0, result.output
        assert _json(result)["data"]["version"] == 1
        result = cli_runner.invoke(cli, ["--json", "remote", "show", "bob"])
        assert _json(result)["data"]["domains"]["projects"] == 0
        result = cli_runner.invoke(cli, ["--json", "remote", "show", "alice"])
        assert _json(result)["data"]["domains"]["projects"] == 1

    def test_same_identity_keeps_local_data_across_runs(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        cli_runner.invoke(cli, ["dispatch", "alice", "ADD_NOTE", "-p", '{"id": "n1"}'])
        result = cli_runner.invoke(cli, ["--json", "local", "show"])
        assert _json(result)["data"]["domains"]["projects"] == 1

@pytest.mark.usefixtures("_isolated_project")
class TestLocal:
    def test_show_empty(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "local", "show"])
        assert result.exit_code == 0
        data = _json(result)["data"]
        assert data["present"] is False
        assert data["key"] == "looops_app_state"

    def test_show_after_dispatch(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        result = cli_runner.invoke(cli, ["--json", "local", "show"])
        data = _json(result)["data"]
        assert data["present"] is True
        assert data["domains"]["projects"] == 1
        assert "ui" not in data["domains"]

    def test_show_human(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        result = cli_runner.invoke(cli, ["local", "show"])
        assert result.exit_code == 0
        assert "local_show" in result.output
        assert "projects" in result.output

    def test_clear(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        result = cli_runner.invoke(cli, ["--json", "local", "clear"])
        assert _json(result)["data"]["cleared"] is True
        result = cli_runner.invoke(cli, ["--json", "local", "show"])
        assert _json(result)["data"]["present"] is False


@pytest.mark.usefixtures("_isolated_project")
class TestRemoteAndStatus:
    def test_remote_show(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        result = cli_runner.invoke(cli, ["--json", "remote", "show", "alice"])
        assert result.exit_code == 0
        data = _json(result)["data"]
        assert data["version"] == 1
        assert data["domains"]["projects"] == 1
        assert data["updated_at"]

    def test_remote_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "remote", "show", "nobody"])
        assert result.exit_code == 1
        assert _json(result)["error"]["code"] == "NOT_FOUND"

    def test_remote_show_disabled(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "loopsync.toml").write_text("[sync]\nenabled = false\n")
        result = cli_runner.invoke(cli, ["--json", "remote", "show", "alice"])
        assert result.exit_code == 1
        assert _json(result)["error"]["code"] == "SYNC_DISABLED"

    def test_status_in_sync(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        result = cli_runner.invoke(cli, ["--json", "status", "alice"])
        data = _json(result)["data"]
        assert data["in_sync"] is True
        assert data["remote_version"] == 1
        assert data["differing_domains"] == []

    def test_status_differs_after_local_clear(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dispatch", "alice", *ADD_GARDEN])
        cli_runner.invoke(cli, ["local", "clear"])
        result = cli_runner.invoke(cli, ["status", "alice"])
        assert result.exit_code == 0
        assert "differs: projects" in result.output

    def test_status_without_remote_document(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "status", "alice"])
        data = _json(result)["data"]
        assert data["remote_present"] is False
        assert data["in_sync"] is False
