"""Tests for the urlmap-agent Typer CLI."""
from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from urlmap_agent.cli import app

from tests.conftest import class_entries


runner = CliRunner()


class TestScanCommand:
    def test_json_output(self, make_war, shop_sources, admin_sources, tmp_path: Path) -> None:
        war = make_war(class_entries({**shop_sources, **admin_sources}))
        out = tmp_path / "out"
        result = runner.invoke(app, ["scan", str(war), "--json", "--out-dir", str(out)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["status"] == "table"
        assert data["operations"]["/users"] == "/admin"
        assert (out / "urlmap.json").exists()
        assert (out / "urlmap.md").exists()

    def test_console_output(self, make_war, shop_sources, tmp_path: Path) -> None:
        war = make_war(class_entries(shop_sources))
        result = runner.invoke(app, ["scan", str(war), "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "/shop" in result.stdout

    def test_missing_archive_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", str(tmp_path / "missing.war")])
        assert result.exit_code == 1
        assert "archive not found" in result.stdout
