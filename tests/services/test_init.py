"""Tests for InitService."""

from __future__ import annotations

from pathlib import Path

from phasectl.services.init import InitService


class TestInitStore:
    def test_creates_config_and_database(self, tmp_path: Path) -> None:
        result = InitService.init_store(tmp_path / "proj", name="roadmap")
        assert result.ok
        data = result.data
        assert data["created"] is True
        assert data["name"] == "roadmap"
        assert data["revision"] == "001_baseline"
        assert Path(data["config_path"]).is_file()
        assert Path(data["db_path"]).is_file()
        assert Path(data["db_path"]).name == "roadmap.db"

    def test_name_defaults_to_directory(self, tmp_path: Path) -> None:
        result = InitService.init_store(tmp_path / "platform")
        assert result.data["name"] == "platform"

    def test_rerun_is_harmless(self, tmp_path: Path) -> None:
        first = InitService.init_store(tmp_path, name="roadmap")
        config = Path(first.data["config_path"]).read_text(encoding="utf-8")
        second = InitService.init_store(tmp_path, name="other")
        assert second.ok
        assert second.data["created"] is False
        assert second.data["name"] == "roadmap"
        assert second.data["revision"] == "001_baseline"
        assert Path(second.data["config_path"]).read_text(encoding="utf-8") == config
