"""
Diff use case — what apply would install, without installing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from macup.adapters.registry import BackendRegistry, default_registry
from macup.core.config.loader import load_config
from macup.core.engine.diff import SectionDiff, compute_diff
from macup.core.engine.planner import plan_execution
from macup.core.errors import ConfigError, CyclicDependencyError


@dataclass
class DiffResult:
    """Per-section installed / missing items, in execution order."""

    diffs: list[SectionDiff] = field(default_factory=list)
    error: str | None = None

    @property
    def in_sync(self) -> bool:
        return self.error is None and all(d.in_sync for d in self.diffs)

    @property
    def missing_total(self) -> int:
        return sum(len(d.missing) for d in self.diffs)

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error}
        return {
            "in_sync": self.in_sync,
            "missing_total": self.missing_total,
            "sections": [d.to_dict() for d in self.diffs],
        }


def run_diff(
    config_path: Path | None = None,
    registry: BackendRegistry | None = None,
) -> DiffResult:
    """Diff every declared section against what is installed."""
    result = DiffResult()

    try:
        config = load_config(config_path)
        ordered = plan_execution(config.sections)
    except (ConfigError, CyclicDependencyError) as e:
        result.error = str(e)
        return result

    if registry is None:
        registry = default_registry(config.scripts)

    result.diffs = compute_diff(ordered, registry)
    return result
