"""Tests for the command line interface."""

from __future__ import annotations

import textwrap

import pytest
import typer
from typer.testing import CliRunner

from conductor import __version__
from conductor.cli import app, parse_header

runner = CliRunner()


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self):
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "Conductor" in result.output

    def test_validate_valid_config(self, tmp_path):
        path = tmp_path / "conductor.yaml"
        path.write_text(textwrap.dedent("""
            base_url: http://localhost:8000
            redirects:
              max_redirects: 3
        """))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0
        assert "Valid config" in result.output
        assert "localhost:8000" in result.output

    def test_validate_invalid_config(self, tmp_path):
        path = tmp_path / "conductor.yaml"
        path.write_text("printer: fancy\n")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Validation failed" in result.output

    def test_probe_rejects_invalid_config(self, tmp_path):
        path = tmp_path / "conductor.yaml"
        path.write_text("timeout_ms: 0\n")
        result = runner.invoke(app, ["probe", "http://localhost:1/", "--config", str(path)])
        assert result.exit_code == 1
        assert "Invalid config" in result.output

    def test_probe_construction_failure(self):
        result = runner.invoke(app, ["probe", "/relative", "--printer", "none"])
        assert result.exit_code == 1
        assert "construction" in result.output


class TestParseHeader:
    def test_splits_name_and_value(self):
        assert parse_header("X-Trace:  1 ") == ("X-Trace", "1")
        assert parse_header("Accept: a:b") == ("Accept", "a:b")

    def test_rejects_malformed(self):
        with pytest.raises(typer.BadParameter):
            parse_header("no-colon")
