"""
Plan use case — show the execution order without touching any backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from macup.core.config.loader import load_config
from macup.core.engine.planner import plan_execution
from macup.core.errors import ConfigError, CyclicDependencyError
from macup.core.models.section import Section, Settings


@dataclass
class PlanResult:
    """Sections in the order apply would run them."""

    sections: list[Section] = field(default_factory=list)
    settings: Settings | None = None
    error: str | None = None
    cycle: list[str] | None = None

    @property
    def order(self) -> list[str]:
        return [s.name for s in self.sections]

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error, "cycle": self.cycle}
        return {
            "order": self.order,
            "settings": self.settings.model_dump() if self.settings else None,
            "sections": [
                {
                    "name": s.name,
                    "backend": s.backend,
                    "depends_on": s.depends_on,
                    "items": s.items,
                }
                for s in self.sections
            ],
        }


def run_plan(config_path: Path | None = None) -> PlanResult:
    """Load the config and order its sections."""
    result = PlanResult()

    try:
        config = load_config(config_path)
        result.settings = config.settings
        result.sections = plan_execution(config.sections)
    except CyclicDependencyError as e:
        result.error = str(e)
        result.cycle = e.cycle
    except ConfigError as e:
        result.error = str(e)

    return result
