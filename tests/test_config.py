"""
Tests for the config loader — discovery, parsing, and validation.
"""

import textwrap
from pathlib import Path

import pytest

from macup.core.config.loader import (
    CONFIG_FILE,
    find_config_file,
    load_config,
    parse_config,
)
from macup.core.errors import ConfigError, ConfigValidationError


FULL_CONFIG = textwrap.dedent("""\
    settings:
      fail_fast: true
      max_parallel: 2
    sections:
      brew:
        items: [git, wget]
      casks:
        backend: brew-cask
        depends_on: [brew]
        items: [iterm2]
      npm:
        depends_on: brew
        items: [typescript]
      mas:
        items:
          - {name: Xcode, id: 497799835}
          - 1333542190
      install:
        backend: script
        scripts:
          - name: rustup
            check: command -v rustup
            command: curl -sSf https://sh.rustup.rs | sh -s -- -y
""")


# ── Discovery ────────────────────────────────────────────────────────


class TestFindConfigFile:
    def test_finds_in_start_dir(self, tmp_path: Path):
        (tmp_path / CONFIG_FILE).write_text("sections: {}\n")
        assert find_config_file(tmp_path) == (tmp_path / CONFIG_FILE).resolve()

    def test_walks_up(self, tmp_path: Path):
        (tmp_path / CONFIG_FILE).write_text("sections: {}\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / CONFIG_FILE).resolve()

    def test_not_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        assert find_config_file(tmp_path) is None

    def test_falls_back_to_xdg_config(self, tmp_path: Path, monkeypatch):
        home = tmp_path / "home"
        config_dir = home / ".config" / "macup"
        config_dir.mkdir(parents=True)
        (config_dir / CONFIG_FILE).write_text("sections: {}\n")
        (home / ".macup.yml").write_text("sections: {}\n")
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.setenv("HOME", str(home))

        assert find_config_file(work) == config_dir / CONFIG_FILE

    def test_falls_back_to_home_dotfile(self, tmp_path: Path, monkeypatch):
        home = tmp_path / "home"
        home.mkdir()
        (home / ".macup.yml").write_text("sections: {}\n")
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.setenv("HOME", str(home))

        assert find_config_file(work) == home / ".macup.yml"

    def test_project_config_wins_over_home(self, tmp_path: Path, monkeypatch):
        home = tmp_path / "home"
        home.mkdir()
        (home / ".macup.yml").write_text("sections: {}\n")
        work = tmp_path / "work"
        work.mkdir()
        (work / CONFIG_FILE).write_text("sections: {}\n")
        monkeypatch.setenv("HOME", str(home))

        assert find_config_file(work) == (work / CONFIG_FILE).resolve()


# ── Loading ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_full_config(self, write_config):
        config = load_config(write_config(FULL_CONFIG))

        assert config.settings.fail_fast is True
        assert config.settings.max_parallel == 2
        assert config.section_names() == ["brew", "casks", "npm", "mas", "install"]

        assert config.get_section("brew").backend == "brew"
        assert config.get_section("casks").backend == "brew-cask"
        assert config.get_section("npm").depends_on == ["brew"]
        assert config.get_section("mas").items == ["497799835", "1333542190"]

        install = config.get_section("install")
        assert install.backend == "script"
        assert install.items == ["rustup"]
        assert [s.name for s in config.scripts] == ["rustup"]

    def test_defaults(self, write_config):
        config = load_config(write_config("sections:\n  brew: [git]\n"))
        assert config.settings.fail_fast is False
        assert config.settings.max_parallel == 4
        assert config.get_section("brew").items == ["git"]

    def test_empty_file(self, write_config):
        config = load_config(write_config(""))
        assert config.sections == []

    def test_records_path(self, write_config):
        path = write_config("sections: {}\n")
        assert load_config(path).path == path

    def test_duplicate_items_collapsed(self, write_config):
        config = load_config(write_config("sections:\n  brew: [git, wget, git]\n"))
        assert config.get_section("brew").items == ["git", "wget"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_no_config_anywhere(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        with pytest.raises(ConfigError, match="No macup.yml"):
            load_config()

    def test_home_config_used_outside_a_project(self, tmp_path: Path, monkeypatch):
        home = tmp_path / "home"
        home.mkdir()
        (home / ".macup.yml").write_text("sections:\n  brew: [git]\n")
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)
        monkeypatch.setenv("HOME", str(home))

        config = load_config()
        assert config.section_names() == ["brew"]

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigValidationError, match="Invalid YAML"):
            load_config(write_config("sections: [unclosed\n"))


# ── Validation ───────────────────────────────────────────────────────


class TestValidation:
    def test_not_a_mapping(self):
        with pytest.raises(ConfigValidationError):
            parse_config(["brew"])

    def test_unknown_top_level_key(self):
        with pytest.raises(ConfigValidationError, match="Unknown top-level"):
            parse_config({"sections": {}, "system": {}})

    def test_unknown_section_key(self):
        with pytest.raises(ConfigValidationError, match="unknown key"):
            parse_config({"sections": {"brew": {"items": ["git"], "packages": []}}})

    def test_zero_max_parallel(self):
        with pytest.raises(ConfigValidationError):
            parse_config({"settings": {"max_parallel": 0}})

    def test_self_dependency(self):
        with pytest.raises(ConfigValidationError):
            parse_config({"sections": {"brew": {"items": ["git"], "depends_on": ["brew"]}}})

    def test_item_mapping_without_id(self):
        with pytest.raises(ConfigValidationError, match="needs an 'id'"):
            parse_config({"sections": {"mas": {"items": [{"name": "Xcode"}]}}})

    def test_invalid_item_type(self):
        with pytest.raises(ConfigValidationError, match="invalid item"):
            parse_config({"sections": {"brew": {"items": [True]}}})

    def test_blank_item(self):
        with pytest.raises(ConfigValidationError, match="empty item"):
            parse_config({"sections": {"brew": {"items": ["  "]}}})

    def test_script_section_with_items(self):
        with pytest.raises(ConfigValidationError, match="declare 'scripts'"):
            parse_config({"sections": {"install": {"backend": "script", "items": ["x"]}}})

    def test_scripts_on_other_backend(self):
        with pytest.raises(ConfigValidationError, match="declares scripts"):
            parse_config({
                "sections": {"brew": {"scripts": [{"name": "x", "command": "true"}]}},
            })

    def test_duplicate_script_names(self):
        with pytest.raises(ConfigValidationError, match="more than once"):
            parse_config({
                "sections": {
                    "one": {"backend": "script", "scripts": [{"name": "x", "command": "true"}]},
                    "two": {"backend": "script", "scripts": [{"name": "x", "command": "false"}]},
                },
            })

    def test_script_without_command(self):
        with pytest.raises(ConfigValidationError):
            parse_config({"sections": {"install": {"backend": "script", "scripts": [{"name": "x"}]}}})

    def test_unknown_dependency_left_to_planner(self):
        # The loader accepts the reference; planning rejects it
        config = parse_config({"sections": {"npm": {"items": ["tsc"], "depends_on": ["brew"]}}})
        assert config.get_section("npm").depends_on == ["brew"]

    def test_script_required_defaults_true(self):
        config = parse_config({
            "sections": {
                "install": {
                    "backend": "script",
                    "scripts": [
                        {"name": "a", "command": "true"},
                        {"name": "b", "command": "true", "required": False},
                    ],
                },
            },
        })
        scripts = {s.name: s for s in config.get_section("install").scripts}
        assert scripts["a"].required is True
        assert scripts["b"].required is False
