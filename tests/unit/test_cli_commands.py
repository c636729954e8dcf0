"""Unit tests for the CLI — command registration and end-to-end behavior.

Exercises the Typer app through typer.testing.CliRunner against a temp
source tree and a local object store.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from iconforge.cli.app import app

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_dir: Path, source_root: Path, monkeypatch) -> Path:
    """Point every ICONFORGE_* path at the temp directory."""
    monkeypatch.chdir(tmp_dir)
    monkeypatch.setenv("ICONFORGE_ENVIRONMENT", "test")
    monkeypatch.setenv("ICONFORGE_SOURCE_ROOT", str(source_root))
    monkeypatch.setenv("ICONFORGE_LEDGER_PATH", str(tmp_dir / "ledger.db"))
    monkeypatch.setenv("ICONFORGE_LOCAL_STORE_PATH", str(tmp_dir / "public"))
    monkeypatch.setenv("ICONFORGE_CRITICAL_ICONS", '["menu"]')
    monkeypatch.setenv("ICONFORGE_UPLOAD_BACKOFF_SECONDS", "0")
    return tmp_dir


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    @pytest.mark.parametrize(
        "command",
        ["validate", "build", "deploy", "rollback", "history", "health", "resolve", "inline"],
    )
    def test_command_registered(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: commands
# ---------------------------------------------------------------------------


class TestValidateCommand:
    def test_valid_tree(self, cli_env, write_icons, make_svg):
        write_icons({"core": {"cart": make_svg(), "user": make_svg("M1 1")}})
        result = runner.invoke(app, ["validate"])
        assert result.exit_code == 0, result.output
        assert "Valid" in result.output

    def test_reserved_name_fails(self, cli_env, write_icons, make_svg):
        write_icons({"core": {"menu": make_svg()}})
        result = runner.invoke(app, ["validate"])
        assert result.exit_code == 1
        assert "violation" in result.output

    def test_missing_source_root(self, cli_env, tmp_dir):
        result = runner.invoke(app, ["validate", "--source", str(tmp_dir / "nope")])
        assert result.exit_code == 1


class TestDeployCommands:
    def test_deploy_history_rollback(self, cli_env, write_icons, make_svg):
        write_icons({"core": {"cart": make_svg()}})
        first = runner.invoke(app, ["deploy"])
        assert first.exit_code == 0, first.output
        manifest_path = cli_env / "public" / "manifest.json"
        version_a = json.loads(manifest_path.read_text())["version"]

        write_icons({"core": {"user": make_svg("M1 1")}})
        second = runner.invoke(app, ["deploy"])
        assert second.exit_code == 0, second.output
        assert json.loads(manifest_path.read_text())["core"]["icons"] == ["cart", "user"]

        history = runner.invoke(app, ["history", "--verify-chain"])
        assert history.exit_code == 0, history.output
        assert "VALID" in history.output

        rolled = runner.invoke(app, ["rollback", version_a])
        assert rolled.exit_code == 0, rolled.output
        assert json.loads(manifest_path.read_text())["core"]["icons"] == ["cart"]

    def test_deploy_aborts_on_violation(self, cli_env, write_icons, make_svg):
        write_icons({"core": {"menu": make_svg()}})
        result = runner.invoke(app, ["deploy"])
        assert result.exit_code == 1
        assert "reserved-name" in result.output
        assert not (cli_env / "public" / "manifest.json").exists()

    def test_build_is_a_dry_run(self, cli_env, write_icons, make_svg):
        write_icons({"core": {"cart": make_svg()}})
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 0, result.output
        assert not (cli_env / "public" / "manifest.json").exists()

    def test_rollback_unknown_version(self, cli_env, write_icons, make_svg):
        write_icons({"core": {"cart": make_svg()}})
        runner.invoke(app, ["deploy"])
        result = runner.invoke(app, ["rollback", "v19990101000000000000"])
        assert result.exit_code == 1
        assert "Unknown version" in result.output

    def test_history_empty(self, cli_env):
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "No manifest versions" in result.output


class TestResolveCommands:
    def test_inline_critical_icon(self, cli_env, source_root, make_svg):
        critical = source_root / "_critical"
        critical.mkdir()
        (critical / "logo.svg").write_text(make_svg(), encoding="utf-8")
        result = runner.invoke(app, ["inline", "logo"])
        assert result.exit_code == 0, result.output
        assert "<svg" in result.output

    def test_inline_unknown_icon(self, cli_env):
        result = runner.invoke(app, ["inline", "cart"])
        assert result.exit_code == 1

    def test_resolve_refuses_critical_icon(self, cli_env):
        result = runner.invoke(app, ["resolve", "core", "menu"])
        assert result.exit_code == 1
        assert "inline" in result.output
