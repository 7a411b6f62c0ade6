"""
Result aggregator — the single owner of the RunReport.

Workers report outcomes concurrently; every write goes through one
lock, so records never interleave. The engine opens and closes
sections; the aggregator derives section and run status from the
collected outcomes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from macup.core.models.section import Section
from macup.core.models.task import InstallTask, OutcomeStatus, TaskOutcome

logger = logging.getLogger(__name__)

DRY_RUN_REASON = "dry run"


class SectionStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"      # nothing needed installing
    PENDING = "pending"      # dry run: items would be installed
    NOT_RUN = "not_run"      # never entered (fail_fast halted the run)


class RunStatus(StrEnum):
    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_SKIPS = "succeeded_with_skips"
    FAILED = "failed"

    @property
    def exit_code(self) -> int:
        return 1 if self is RunStatus.FAILED else 0


@dataclass(frozen=True)
class Failure:
    """One failure, for the final report. ``item`` is None for section-level errors."""

    kind: str
    section: str
    item: str | None
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "section": self.section,
            "item": self.item,
            "reason": self.reason,
        }


@dataclass
class SectionReport:
    """Outcomes and status of one section."""

    section: str
    backend: str
    status: SectionStatus = SectionStatus.NOT_RUN
    outcomes: list[TaskOutcome] = field(default_factory=list)
    prerequisite: TaskOutcome | None = None
    error: str | None = None
    error_kind: str | None = None

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self.count(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        """Failures that fail the section. Optional failures are not counted."""
        return sum(1 for o in self.outcomes if o.blocking)

    @property
    def warned(self) -> int:
        return sum(1 for o in self.outcomes if o.failed and not o.required)

    @property
    def pending(self) -> int:
        """Items a dry run would have installed."""
        outcomes = list(self.outcomes)
        if self.prerequisite is not None:
            outcomes.append(self.prerequisite)
        return sum(
            1 for o in outcomes
            if o.status == OutcomeStatus.NOT_ATTEMPTED and o.reason == DRY_RUN_REASON
        )

    @property
    def skipped(self) -> int:
        return self.count(OutcomeStatus.SKIPPED)

    def outcome_for(self, item: str) -> TaskOutcome | None:
        for outcome in self.outcomes:
            if outcome.task.item == item:
                return outcome
        return None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "section": self.section,
            "backend": self.backend,
            "status": self.status.value,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
        if self.prerequisite is not None:
            result["prerequisite"] = self.prerequisite.to_dict()
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
        return result


@dataclass
class RunReport:
    """Result of one provisioning run. Built once, never persisted."""

    sections: list[SectionReport] = field(default_factory=list)
    halted: bool = False
    dry_run: bool = False

    def get(self, section: str) -> SectionReport | None:
        for report in self.sections:
            if report.section == section:
                return report
        return None

    @property
    def outcomes(self) -> list[TaskOutcome]:
        return [o for s in self.sections for o in s.outcomes]

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def failures(self) -> list[Failure]:
        """Every failure with its kind and the section/item it belongs to."""
        found: list[Failure] = []
        for report in self.sections:
            if report.prerequisite is not None and report.prerequisite.failed:
                pre = report.prerequisite
                found.append(Failure(
                    kind=pre.error_kind or "InstallError",
                    section=report.section,
                    item=pre.task.item,
                    reason=pre.reason,
                ))
            if report.error:
                found.append(Failure(
                    kind=report.error_kind or "MacupError",
                    section=report.section,
                    item=None,
                    reason=report.error,
                ))
            for outcome in report.outcomes:
                if outcome.blocking:
                    found.append(Failure(
                        kind=outcome.error_kind or "InstallError",
                        section=report.section,
                        item=outcome.task.item,
                        reason=outcome.reason,
                    ))
        return found

    def warnings(self) -> list[Failure]:
        """Failures of optional items. These never fail the run."""
        return [
            Failure(
                kind=o.error_kind or "InstallError",
                section=o.task.section,
                item=o.task.item,
                reason=o.reason,
            )
            for o in self.outcomes
            if o.failed and not o.required
        ]

    @property
    def status(self) -> RunStatus:
        if any(s.status == SectionStatus.FAILED for s in self.sections) or self.failures():
            return RunStatus.FAILED
        if self.count(OutcomeStatus.SKIPPED) > 0 or self.warnings():
            return RunStatus.SUCCEEDED_WITH_SKIPS
        return RunStatus.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "halted": self.halted,
            "dry_run": self.dry_run,
            "total": self.total,
            "counts": {s.value: self.count(s) for s in OutcomeStatus},
            "sections": [s.to_dict() for s in self.sections],
            "failures": [f.to_dict() for f in self.failures()],
            "warnings": [w.to_dict() for w in self.warnings()],
        }


class ResultAggregator:
    """Collects outcomes into a RunReport under a single lock."""

    def __init__(self, dry_run: bool = False):
        self._lock = threading.Lock()
        self._report = RunReport(dry_run=dry_run)
        self._by_name: dict[str, SectionReport] = {}
        self._finalized = False

    def _section(self, name: str) -> SectionReport:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Section '{name}' was never opened") from None

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError("RunReport is already finalized")

    def open_section(self, section: Section) -> None:
        """Start a section's report; sections appear in the order opened."""
        with self._lock:
            self._check_open()
            report = SectionReport(section=section.name, backend=section.backend)
            self._by_name[section.name] = report
            self._report.sections.append(report)

    def record(self, outcome: TaskOutcome) -> None:
        """Append one outcome. Safe to call from any worker thread."""
        with self._lock:
            self._check_open()
            report = self._section(outcome.task.section)
            if outcome.task.prerequisite:
                report.prerequisite = outcome
            else:
                report.outcomes.append(outcome)
        logger.debug("%s → %s", outcome.task.key, outcome.status.value)

    def fail_section(
        self,
        name: str,
        error: Exception,
        pending: list[InstallTask] | None = None,
    ) -> None:
        """Mark a section failed before its items ran.

        ``pending`` items are recorded as not attempted.
        """
        with self._lock:
            self._check_open()
            report = self._section(name)
            report.status = SectionStatus.FAILED
            report.error = str(error)
            report.error_kind = getattr(error, "kind", type(error).__name__)
            for task in pending or []:
                report.outcomes.append(
                    TaskOutcome.not_attempted(task, reason=f"section failed: {report.error_kind}")
                )
        logger.info("✗ section %s: %s", name, error)

    def close_section(self, name: str) -> SectionStatus:
        """Derive the section status from its outcomes."""
        with self._lock:
            self._check_open()
            report = self._section(name)
            if report.status != SectionStatus.FAILED:
                prerequisite_failed = report.prerequisite is not None and report.prerequisite.failed
                if prerequisite_failed or report.failed:
                    report.status = SectionStatus.FAILED
                elif report.succeeded or report.warned:
                    report.status = SectionStatus.SUCCEEDED
                elif report.pending:
                    report.status = SectionStatus.PENDING
                else:
                    report.status = SectionStatus.SKIPPED
            return report.status

    def mark_not_run(self, section: Section, tasks: list[InstallTask]) -> None:
        """Record a section the run never entered."""
        with self._lock:
            self._check_open()
            report = SectionReport(
                section=section.name,
                backend=section.backend,
                status=SectionStatus.NOT_RUN,
                outcomes=[
                    TaskOutcome.not_attempted(t, reason="run halted by fail_fast") for t in tasks
                ],
            )
            self._by_name[section.name] = report
            self._report.sections.append(report)

    def halt(self) -> None:
        with self._lock:
            self._report.halted = True

    def finalize(self) -> RunReport:
        """Freeze and return the report. Further writes raise RuntimeError."""
        with self._lock:
            self._finalized = True
            return self._report
