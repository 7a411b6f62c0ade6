"""
Section model — one configured unit of installation work.

Sections are the building blocks of a provisioning run. Each section
names a backend, the items that backend should make present, and the
sections that must run before it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator


class Settings(BaseModel):
    """Run-wide settings, passed explicitly into the execution engine."""

    fail_fast: bool = False
    max_parallel: int = Field(default=4, ge=1)


class InstallScript(BaseModel):
    """An ad-hoc install script declared under a ``script`` section.

    ``check`` is a shell command whose exit status 0 means the script's
    effect is already present. Without a check the script always runs.
    A script that is not ``required`` may fail without failing the run.
    """

    name: str
    command: str
    check: str | None = None
    required: bool = True

    @field_validator("name", "command")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class Section(BaseModel):
    """A named, independently schedulable group of items for one backend."""

    name: str
    backend: str
    items: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    scripts: list[InstallScript] = Field(default_factory=list)

    @field_validator("name", "backend")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("items")
    @classmethod
    def _dedupe_items(cls, items: list[str]) -> list[str]:
        # Keep declaration order, drop repeats
        return list(dict.fromkeys(items))

    @model_validator(mode="after")
    def _no_self_dependency(self) -> Section:
        if self.name in self.depends_on:
            raise ValueError(f"section '{self.name}' cannot depend on itself")
        return self
