"""
Apply use case — provision the machine from macup.yml.

This is the top-level orchestrator: it loads config, applies CLI
overrides to the settings, builds the backend registry, and hands the
sections to the execution engine. The full vertical slice from user
intent to a RunReport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from macup.adapters.registry import BackendRegistry, default_registry
from macup.core.config.loader import load_config
from macup.core.engine.aggregator import RunReport
from macup.core.engine.executor import ExecutionEngine
from macup.core.errors import ConfigError, CyclicDependencyError
from macup.core.models.config import Config

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Result of an apply run."""

    report: RunReport | None = None
    config: Config | None = None
    error: str | None = None
    error_kind: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.report is None:
            return 1
        return self.report.status.exit_code

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error, "error_kind": self.error_kind}

        result: dict[str, Any] = {
            "config_path": str(self.config.path) if self.config and self.config.path else None,
        }
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_apply(
    config_path: Path | None = None,
    sections: list[str] | None = None,
    dry_run: bool = False,
    fail_fast: bool | None = None,
    max_parallel: int | None = None,
    registry: BackendRegistry | None = None,
) -> ApplyResult:
    """Install everything macup.yml declares that is not yet present.

    Args:
        config_path: Optional explicit path to macup.yml.
        sections: Optional section names to restrict the run to.
        dry_run: If True, plan and diff but install nothing.
        fail_fast: Overrides ``settings.fail_fast`` when given.
        max_parallel: Overrides ``settings.max_parallel`` when given.
        registry: Optional pre-configured backend registry.

    Returns:
        ApplyResult with the run report, or an error for config and
        dependency-cycle problems.
    """
    result = ApplyResult()

    # ── Load config ──────────────────────────────────────────────
    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error, result.error_kind = str(e), e.kind
        return result
    result.config = config

    overrides: dict[str, Any] = {}
    if fail_fast is not None:
        overrides["fail_fast"] = fail_fast
    if max_parallel is not None:
        overrides["max_parallel"] = max_parallel
    settings = config.settings.model_copy(update=overrides)

    if registry is None:
        registry = default_registry(config.scripts)

    # ── Execute ──────────────────────────────────────────────────
    try:
        engine = ExecutionEngine(registry, settings, dry_run=dry_run)
        result.report = engine.run(config.sections, only=sections)
    except (ConfigError, CyclicDependencyError) as e:
        result.error, result.error_kind = str(e), e.kind
        return result

    logger.info("Apply finished: %s", result.report.status.value)
    return result
