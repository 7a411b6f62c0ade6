"""
Configuration loader — reads macup.yml into domain models.

This is the primary entry point for loading a provisioning config.
It reads YAML, normalizes the section shorthand, validates against
Pydantic schemas, and returns a typed Config.

Section shorthand accepted in ``sections``:

    brew: [git, wget]            # bare item list, backend = key
    casks:                       # full mapping
      backend: brew-cask
      depends_on: brew           # string or list
      items: [iterm2]
    mas:
      items:
        - {name: Xcode, id: 497799835}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from macup.core.errors import ConfigError, ConfigValidationError
from macup.core.models.config import Config
from macup.core.models.section import Section

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "macup.yml"

SCRIPT_BACKEND = "script"

_SECTION_KEYS = {"backend", "items", "depends_on", "scripts"}


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for macup.yml starting from the given directory, walking up.

    When no ancestor holds one, fall back to ``~/.config/macup/macup.yml``
    and then ``~/.macup.yml``.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to macup.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    for candidate in home_config_files():
        if candidate.is_file():
            logger.debug("Using home config %s", candidate)
            return candidate

    return None


def home_config_files() -> list[Path]:
    """Per-user config locations, in lookup order."""
    home = Path.home()
    return [home / ".config" / "macup" / CONFIG_FILE, home / f".{CONFIG_FILE}"]


def load_config(path: Path | None = None) -> Config:
    """Load and validate a provisioning config.

    Args:
        path: Explicit path to macup.yml. If None, searches upward
            and then the home config locations.

    Returns:
        Validated Config model.

    Raises:
        ConfigError: If the file is missing or unreadable.
        ConfigValidationError: If its content is invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(f"No {CONFIG_FILE} found. Create one or specify --config.")

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {path}: {e}") from e

    config = parse_config(data)
    config.path = path
    logger.info("Loaded %d section(s) from %s", len(config.sections), path)
    return config


def parse_config(data: Any) -> Config:
    """Validate already-parsed YAML data into a Config.

    Raises:
        ConfigValidationError: On any structural or value problem.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Expected a YAML mapping, got {type(data).__name__}")

    unknown = set(data) - {"settings", "sections"}
    if unknown:
        raise ConfigValidationError(f"Unknown top-level key(s): {', '.join(sorted(map(str, unknown)))}")

    raw_sections = data.get("sections") or {}
    if not isinstance(raw_sections, dict):
        raise ConfigValidationError("'sections' must be a mapping of section name to section")

    sections = [_parse_section(str(name), body) for name, body in raw_sections.items()]

    try:
        return Config.model_validate({
            "settings": data.get("settings") or {},
            "sections": sections,
        })
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def _parse_section(name: str, body: Any) -> Section:
    if body is None:
        body = {}
    elif isinstance(body, list):
        body = {"items": body}
    elif not isinstance(body, dict):
        raise ConfigValidationError(
            f"Section '{name}' must be a mapping or a list of items, got {type(body).__name__}"
        )

    unknown = set(body) - _SECTION_KEYS
    if unknown:
        raise ConfigValidationError(
            f"Section '{name}' has unknown key(s): {', '.join(sorted(map(str, unknown)))}"
        )

    backend = body.get("backend") or name
    depends_on = body.get("depends_on") or []
    if isinstance(depends_on, str):
        depends_on = [depends_on]

    scripts = body.get("scripts") or []
    if backend == SCRIPT_BACKEND:
        if body.get("items"):
            raise ConfigValidationError(
                f"Section '{name}' uses the script backend; declare 'scripts', not 'items'"
            )
        items = [
            s.get("name") if isinstance(s, dict) else s
            for s in scripts
        ]
    else:
        if scripts:
            raise ConfigValidationError(
                f"Section '{name}' declares scripts but uses backend '{backend}'"
            )
        items = [_normalize_item(name, raw) for raw in body.get("items") or []]

    try:
        return Section.model_validate({
            "name": name,
            "backend": backend,
            "items": items,
            "depends_on": depends_on,
            "scripts": scripts,
        })
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid section '{name}': {e}") from e


def _normalize_item(section: str, raw: Any) -> str:
    """Reduce one declared item to its identifier.

    Strings and numbers are used as-is; mappings carry an ``id``
    (App Store ids come with a display ``name`` alongside).
    """
    if isinstance(raw, dict):
        if "id" not in raw:
            raise ConfigValidationError(f"Section '{section}': item mapping needs an 'id': {raw}")
        raw = raw["id"]

    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise ConfigValidationError(f"Section '{section}': invalid item {raw!r}")

    item = str(raw).strip()
    if not item:
        raise ConfigValidationError(f"Section '{section}': empty item")
    return item
