"""
Config model — everything one macup.yml declares.

Loaded from macup.yml; sections keep their declaration order, which
the planner uses to break ties.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from macup.core.models.section import InstallScript, Section, Settings


class Config(BaseModel):
    """Root configuration — settings plus the declared sections."""

    settings: Settings = Field(default_factory=Settings)
    sections: list[Section] = Field(default_factory=list)
    path: Path | None = None

    @model_validator(mode="after")
    def _unique_script_names(self) -> Config:
        seen: set[str] = set()
        for script in self.scripts:
            if script.name in seen:
                raise ValueError(f"script '{script.name}' is declared more than once")
            seen.add(script.name)
        return self

    @property
    def scripts(self) -> list[InstallScript]:
        """All install scripts, across every script section."""
        return [script for section in self.sections for script in section.scripts]

    def get_section(self, name: str) -> Section | None:
        """Look up a section by name."""
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def section_names(self) -> list[str]:
        return [s.name for s in self.sections]
