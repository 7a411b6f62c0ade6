"""
Tests for CLI commands — apply, diff, plan, backends, and global options.

Backends are swapped for mocks so no package manager ever runs.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from macup.adapters.mock import MockBackend
from macup.adapters.registry import BackendRegistry
from macup.main import cli

CONFIG = textwrap.dedent("""\
    settings:
      max_parallel: 2
    sections:
      npm:
        depends_on: [brew]
        items: [typescript]
      brew:
        items: [git, wget]
""")


@pytest.fixture
def mocks(monkeypatch):
    """Route every use case to a registry of mock backends."""
    backends = {
        "brew": MockBackend("brew", installed={"git"}),
        "npm": MockBackend("npm"),
    }

    def _registry(scripts=None):
        registry = BackendRegistry()
        for backend in backends.values():
            registry.register(backend)
        return registry

    monkeypatch.setattr("macup.core.use_cases.apply.default_registry", _registry)
    monkeypatch.setattr("macup.core.use_cases.diff.default_registry", _registry)
    monkeypatch.setattr("macup.adapters.registry.default_registry", _registry)
    return backends


@pytest.fixture
def config(write_config) -> Path:
    return write_config(CONFIG)


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "macup.yml" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


# ── plan ─────────────────────────────────────────────────────────────


class TestPlanCommand:
    def test_order(self, config):
        result = CliRunner().invoke(cli, ["--config", str(config), "plan", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["order"] == ["brew", "npm"]
        assert data["settings"]["max_parallel"] == 2

    def test_pretty(self, config):
        result = CliRunner().invoke(cli, ["--config", str(config), "plan"])
        assert result.exit_code == 0
        assert "1. brew" in result.output
        assert "2. npm" in result.output

    def test_cycle(self, write_config):
        path = write_config(textwrap.dedent("""\
            sections:
              a: {depends_on: [b], items: [x]}
              b: {depends_on: [a], items: [y]}
        """))
        result = CliRunner().invoke(cli, ["--config", str(path), "plan", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["cycle"] == ["a", "b", "a"]

    def test_missing_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        result = CliRunner().invoke(cli, ["plan"])
        assert result.exit_code == 1
        assert "No macup.yml" in result.output


# ── diff ─────────────────────────────────────────────────────────────


class TestDiffCommand:
    def test_json(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "diff", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["missing_total"] == 2
        brew = data["sections"][0]
        assert brew["installed"] == ["git"]
        assert brew["missing"] == ["wget"]
        assert mocks["brew"].call_count == 0

    def test_pretty(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "diff"])
        assert result.exit_code == 0
        assert "+ wget" in result.output
        assert "2 item(s) missing" in result.output


# ── apply ────────────────────────────────────────────────────────────


class TestApplyCommand:
    def test_apply_installs_missing(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "apply"])
        assert result.exit_code == 0
        assert mocks["brew"].install_calls == ["wget"]
        assert mocks["npm"].install_calls == ["typescript"]
        assert "succeeded_with_skips" in result.output

    def test_apply_json(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "apply", "--json"])
        assert result.exit_code == 0
        report = json.loads(result.output)["report"]
        assert report["status"] == "succeeded_with_skips"
        assert report["counts"]["succeeded"] == 2
        assert report["counts"]["skipped"] == 1

    def test_failure_exits_nonzero(self, config, mocks):
        mocks["brew"].set_failure("wget", "Error: download failed")
        result = CliRunner().invoke(cli, ["--config", str(config), "apply"])
        assert result.exit_code == 1
        assert "✗ wget" in result.output
        assert "download failed" in result.output
        # continue mode: npm still runs
        assert mocks["npm"].install_calls == ["typescript"]

    def test_optional_failure_is_a_warning(self, config, mocks):
        mocks["brew"].set_failure("wget", "mirror unreachable", required=False)
        result = CliRunner().invoke(cli, ["--config", str(config), "apply"])
        assert result.exit_code == 0
        assert "⚠ wget (optional)" in result.output
        assert "1 warning(s)" in result.output

    def test_fail_fast_flag(self, config, mocks):
        mocks["brew"].set_failure("wget")
        result = CliRunner().invoke(cli, ["--config", str(config), "apply", "--fail-fast", "--json"])
        assert result.exit_code == 1
        report = json.loads(result.output)["report"]
        assert report["halted"] is True
        assert report["sections"][1]["status"] == "not_run"
        assert mocks["npm"].call_count == 0

    def test_dry_run(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "apply", "--dry-run"])
        assert result.exit_code == 0
        assert mocks["brew"].call_count == 0
        assert mocks["npm"].call_count == 0
        assert "dry run" in result.output
        assert "pending" in result.output
        assert "2 would be installed" in result.output

    def test_selected_sections(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "apply", "npm"])
        assert result.exit_code == 0
        assert mocks["brew"].call_count == 0
        assert mocks["npm"].install_calls == ["typescript"]

    def test_unknown_section(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "apply", "pip"])
        assert result.exit_code == 1
        assert "Unknown section" in result.output

    def test_max_parallel_must_be_positive(self, config, mocks):
        result = CliRunner().invoke(cli, ["--config", str(config), "apply", "--max-parallel", "0"])
        assert result.exit_code == 2

    def test_cycle_installs_nothing(self, write_config, mocks):
        path = write_config(textwrap.dedent("""\
            sections:
              brew: {depends_on: [npm], items: [wget]}
              npm: {depends_on: [brew], items: [typescript]}
        """))
        result = CliRunner().invoke(cli, ["--config", str(path), "apply", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["error_kind"] == "CyclicDependencyError"
        assert mocks["brew"].call_count == 0
        assert mocks["npm"].call_count == 0


# ── backends ─────────────────────────────────────────────────────────


class TestBackendsCommand:
    def test_json(self, mocks):
        mocks["npm"].set_available(False)
        result = CliRunner().invoke(cli, ["backends", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["brew"]["available"] is True
        assert data["npm"]["available"] is False

    def test_pretty(self, mocks):
        result = CliRunner().invoke(cli, ["backends"])
        assert result.exit_code == 0
        assert "✓ brew" in result.output
