"""Tests for the `kindcheck` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from kindcheck import __version__
from kindcheck.cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _clean_project(tmp_path: Path) -> Path:
    """Create a project whose only target has no violations."""
    project = tmp_path / "proj"
    (project / "src" / "domain").mkdir(parents=True)
    (project / "src" / "domain" / "order.ts").write_text("export const id = (s: string) => s;\n")
    (project / "kindcheck.yml").write_text(
        "targets:\n  domain:\n    path: src/domain\n    rules: { pure: true }\n"
    )
    return project


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.output
        assert "symbols" in result.output


class TestCheckCommand:
    def test_no_config(self, tmp_path: Path) -> None:
        """No kindcheck.yml -> exit 0, nothing to report."""
        result = CliRunner().invoke(main, ["check", "--project", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert result.output == ""

    def test_clean_project_rich(self, tmp_path: Path) -> None:
        project = _clean_project(tmp_path)
        result = CliRunner().invoke(
            main, ["check", "--project", str(project), "--format", "rich", "--strict"]
        )
        assert result.exit_code == 0, result.output
        assert "Targets: 1 checked (1 symbols)" in result.output
        assert "No violations found" in result.output

    def test_violations_without_strict(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", "--project", str(tmp_project), "--format", "rich"]
        )
        assert result.exit_code == 0, result.output
        assert "noConsole [KS70009]" in result.output
        assert "src/app/main.ts:2" in result.output

    def test_violations_with_strict(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", "--project", str(tmp_project), "--strict", "--format", "rich"]
        )
        assert result.exit_code == 1, result.output

    def test_format_json(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", "--project", str(tmp_project), "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        parsed = json.loads(result.output)
        assert [d["code"] for d in parsed["diagnostics"]] == [70009]
        assert parsed["diagnostics"][0]["artifactPath"] == "src/app/main.ts"
        assert parsed["summary"]["files_scanned"] == 3

    def test_format_porcelain(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", "--project", str(tmp_project), "--format", "porcelain"]
        )
        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.strip().split("\n") if line]
        assert len(lines) == 1
        parts = lines[0].split(":", 5)
        assert parts[0] == "src/app/main.ts"
        assert parts[3] == "70009"
        assert parts[4] == "noConsole"

    def test_non_tty_defaults_to_porcelain(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(main, ["check", "--project", str(tmp_project)])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("src/app/main.ts:")

    def test_invalid_config_exits_2(self, tmp_project: Path) -> None:
        (tmp_project / "kindcheck.yml").write_text("- just\n- a list\n")
        result = CliRunner().invoke(main, ["check", "--project", str(tmp_project)])
        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_explicit_config(self, tmp_project: Path) -> None:
        config = tmp_project / "other.yml"
        config.write_text("targets:\n  app:\n    path: src/app\n    rules: { noImports: true }\n")
        result = CliRunner().invoke(
            main,
            ["check", "--project", str(tmp_project), "--config", str(config), "--format", "json"],
        )
        assert result.exit_code == 0, result.output
        parsed = json.loads(result.output)
        assert [d["rule"] for d in parsed["diagnostics"]] == ["noImports"]


class TestSymbolsCommand:
    def test_json(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(main, ["symbols", "--project", str(tmp_project), "--json"])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.output)
        assert [r["name"] for r in rows] == ["domain", "domain", "infra", "app", "layers"]
        assert rows[0] == {
            "id": "sym-0",
            "name": "domain",
            "valueKind": "directory",
            "rules": {"pure": True, "noIO": True},
            "path": "src/domain",
            "files": 1,
        }
        layers = rows[4]
        assert layers["valueKind"] == "composite"
        assert layers["members"] == ["domain", "infra", "app"]
        assert layers["rules"]["noDependency"] == [["domain", "infra"], ["infra", "app"]]

    def test_table(self, tmp_project: Path) -> None:
        result = CliRunner().invoke(main, ["symbols", "--project", str(tmp_project)])
        assert result.exit_code == 0, result.output
        assert "Symbols (5)" in result.output
        assert "layers" in result.output

    def test_no_config_exits_2(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["symbols", "--project", str(tmp_path)])
        assert result.exit_code == 2
        assert "No kindcheck.yml found" in result.output
