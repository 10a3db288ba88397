"""Tests for init CLI command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from phasectl.cli import cli


class TestInitCommand:
    def test_init_basic(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["init", str(tmp_path), "--name", "roadmap"])
        assert result.exit_code == 0
        assert "init" in result.output
        assert (tmp_path / "phasectl.toml").is_file()
        assert (tmp_path / ".phasectl" / "phasectl.db").is_file()

    def test_init_json_output(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "init", str(tmp_path), "--name", "roadmap"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "init"
        assert data["data"]["name"] == "roadmap"
        assert data["data"]["created"] is True
        assert data["data"]["revision"]

    def test_init_defaults_name_to_directory(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "platform-roadmap"
        result = cli_runner.invoke(cli, ["--json", "init", str(root)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["name"] == "platform-roadmap"

    def test_init_twice_is_harmless(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        first = cli_runner.invoke(cli, ["--json", "init", str(tmp_path), "--name", "first"])
        second = cli_runner.invoke(cli, ["--json", "init", str(tmp_path), "--name", "second"])
        assert second.exit_code == 0
        before = json.loads(first.stdout)["data"]
        after = json.loads(second.stdout)["data"]
        assert after["created"] is False
        assert after["name"] == "first"
        assert after["revision"] == before["revision"]

    def test_init_quiet(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["-q", "init", str(tmp_path)])
        assert result.exit_code == 0
        assert result.stdout.strip() == "OK: init"
