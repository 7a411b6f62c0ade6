"""
Diff engine — which declared items are already present.

One installed-state query per section, then a set difference by
exact, case-sensitive identifier. Results keep declaration order.
Nothing here installs anything, so the ``diff`` command reuses it
directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from macup.adapters.base import Backend
from macup.adapters.registry import BackendRegistry
from macup.core.errors import BackendQueryError, RuntimeUnavailableError
from macup.core.models.section import Section

logger = logging.getLogger(__name__)


@dataclass
class SectionDiff:
    """Installed vs. missing items for one section."""

    section: str
    backend: str
    installed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def in_sync(self) -> bool:
        return self.ok and not self.missing

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "section": self.section,
            "backend": self.backend,
            "installed": self.installed,
            "missing": self.missing,
        }
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
        return result


def diff_section(section: Section, backend: Backend) -> SectionDiff:
    """Split a section's declared items into installed and missing.

    Raises:
        BackendQueryError: If the backend cannot list its installed items.
    """
    present = backend.installed_among(section.items)
    installed = [item for item in section.items if item in present]
    missing = [item for item in section.items if item not in present]
    logger.debug(
        "%s: %d installed, %d missing", section.name, len(installed), len(missing)
    )
    return SectionDiff(
        section=section.name,
        backend=backend.name,
        installed=installed,
        missing=missing,
    )


def compute_diff(sections: list[Section], registry: BackendRegistry) -> list[SectionDiff]:
    """Diff every section without installing anything.

    Sections whose backend is unknown, unavailable, or fails its query
    report the error instead of item lists.
    """
    diffs: list[SectionDiff] = []
    for section in sections:
        backend = registry.get(section.backend)
        if backend is None:
            diffs.append(SectionDiff(
                section=section.name,
                backend=section.backend,
                missing=list(section.items),
                error=f"No backend registered for '{section.backend}'",
                error_kind="ConfigValidationError",
            ))
            continue

        if not section.items:
            diffs.append(SectionDiff(section=section.name, backend=backend.name))
            continue

        if not backend.is_runtime_available():
            err = RuntimeUnavailableError(
                backend.name, f"'{backend.runtime_command}' not found on PATH"
            )
            diffs.append(SectionDiff(
                section=section.name,
                backend=backend.name,
                missing=list(section.items),
                error=str(err),
                error_kind=err.kind,
            ))
            continue

        try:
            diffs.append(diff_section(section, backend))
        except BackendQueryError as e:
            diffs.append(SectionDiff(
                section=section.name,
                backend=backend.name,
                error=str(e),
                error_kind=e.kind,
            ))
    return diffs
