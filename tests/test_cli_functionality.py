"""
Test CLI functionality of the Lrama Language Server.
Validates that the command-line interface works correctly.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json

import pytest
from click.testing import CliRunner

from lrama_language_server import version
from lrama_language_server.cmd import discover_grammar_files, run_cli
from lrama_language_server.main import main


CLEAN_GRAMMAR = "%token NUM\n%start expr\n%%\nexpr: NUM | expr '+' expr ;\n"
WARNING_GRAMMAR = "%%\nfoo: bar ;\n"


@pytest.fixture
def runner():
    return CliRunner()


class TestCliCommand:
    """Test the click entry point."""

    def test_cli_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--cli" in result.output
        assert "--validation-cfg" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert version() in result.output

    def test_cli_clean_file(self, runner, tmp_path):
        grammar = tmp_path / "clean.y"
        grammar.write_text(CLEAN_GRAMMAR)

        result = runner.invoke(main, ["--cli", str(grammar)])
        assert result.exit_code == 0
        assert "All 1 files analyzed successfully" in result.output

    def test_cli_reports_diagnostics(self, runner, tmp_path):
        grammar = tmp_path / "warn.y"
        grammar.write_text(WARNING_GRAMMAR)

        result = runner.invoke(main, ["--cli", str(grammar)])
        assert result.exit_code == 0
        assert f"{grammar}:2:6: warning: Symbol 'bar' is not defined" in result.output
        assert f"{grammar}:2:1: information: Rule 'foo' is defined but never used" in result.output
        assert "Summary: 0 errors, 1 warnings, 1 notes" in result.output

    def test_cli_strict(self, runner, tmp_path):
        grammar = tmp_path / "warn.y"
        grammar.write_text(WARNING_GRAMMAR)

        result = runner.invoke(main, ["--cli", "--strict", str(grammar)])
        assert result.exit_code == 1

    def test_cli_strict_ignores_notes(self, runner, tmp_path):
        grammar = tmp_path / "unused.y"
        grammar.write_text("%%\nfoo: ;\n")

        result = runner.invoke(main, ["--cli", "--strict", str(grammar)])
        assert result.exit_code == 0

    def test_cli_validation_config(self, runner, tmp_path):
        grammar = tmp_path / "warn.y"
        grammar.write_text(WARNING_GRAMMAR)
        cfg = tmp_path / "validation.json"
        cfg.write_text(json.dumps({"disabled_rules": ["unused-rule", "undefined-symbol"]}))

        result = runner.invoke(main, ["--cli", "--strict", "--validation-cfg", str(cfg), str(grammar)])
        assert result.exit_code == 0
        assert "All 1 files analyzed successfully" in result.output

    def test_cli_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["--cli", str(tmp_path / "missing.y")])
        assert result.exit_code != 0

    def test_cli_verbose(self, runner, tmp_path):
        grammar = tmp_path / "clean.y"
        grammar.write_text(CLEAN_GRAMMAR)

        result = runner.invoke(main, ["--cli", "--verbose", str(grammar)])
        assert result.exit_code == 0


class TestRunCli:
    """Test the command line runner directly."""

    def test_discovery(self, tmp_path, monkeypatch, capsys):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "a.y").write_text(CLEAN_GRAMMAR)
        (tmp_path / "b.yy").write_text(WARNING_GRAMMAR)
        (tmp_path / "notes.txt").write_text("%%\nfoo: bar ;\n")

        assert [p.name for p in discover_grammar_files(tmp_path)] == ["b.yy", "a.y"]

        monkeypatch.chdir(tmp_path)
        assert run_cli([], strict=True) == 1
        assert "Symbol 'bar' is not defined" in capsys.readouterr().out

    def test_no_files(self, tmp_path, monkeypatch, caplog):
        monkeypatch.chdir(tmp_path)
        assert run_cli([]) == 0
        assert "No grammar files found" in caplog.text

    def test_bad_validation_config(self, tmp_path, caplog):
        grammar = tmp_path / "clean.y"
        grammar.write_text(CLEAN_GRAMMAR)
        cfg = tmp_path / "broken.json"
        cfg.write_text("[")

        assert run_cli([grammar], validation_cfg_path=cfg) == 1
        assert "CLI analysis failed" in caplog.text

    def test_unreadable_file(self, tmp_path, caplog):
        assert run_cli([tmp_path / "gone.y"]) == 1
        assert "Failed to read" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__])
