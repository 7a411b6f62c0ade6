"""
Engine executor — the central provisioning loop.

The engine takes declared sections, plans them into a dependency
order, and for each section: makes sure the backend's runtime exists,
diffs declared items against what is installed, and installs the rest
on a bounded worker pool. Every outcome goes to the result aggregator.

Flow:
    sections → plan → (runtime check → diff → install) per section → report

States:
    IDLE → PLANNING → EXECUTING → DONE
    PLANNING → ABORTED   (config validation or dependency cycle)
"""

from __future__ import annotations

import logging
from enum import StrEnum

from macup.adapters.base import Backend
from macup.adapters.registry import BackendRegistry
from macup.core.engine.aggregator import (
    DRY_RUN_REASON,
    ResultAggregator,
    RunReport,
    SectionStatus,
)
from macup.core.engine.diff import diff_section
from macup.core.engine.planner import plan_execution
from macup.core.engine.pool import execute_task
from macup.core.errors import (
    BackendQueryError,
    ConfigValidationError,
    CyclicDependencyError,
    RuntimeUnavailableError,
)
from macup.core.models.section import Section, Settings
from macup.core.models.task import InstallTask, TaskOutcome

logger = logging.getLogger(__name__)


class EngineState(StrEnum):
    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    DONE = "done"
    ABORTED = "aborted"


class ExecutionEngine:
    """Runs sections in dependency order with bounded per-section parallelism.

    Args:
        registry: Backends, looked up by each section's ``backend`` id.
        settings: ``fail_fast`` and ``max_parallel`` for this engine.
        dry_run: Plan and diff, but record missing items as not
            attempted instead of installing them.
    """

    def __init__(
        self,
        registry: BackendRegistry,
        settings: Settings | None = None,
        *,
        dry_run: bool = False,
    ):
        settings = settings or Settings()
        if settings.max_parallel < 1:
            raise ConfigValidationError(
                f"max_parallel must be >= 1, got {settings.max_parallel}"
            )
        self.registry = registry
        self.settings = settings
        self.dry_run = dry_run
        self.state = EngineState.IDLE
        self.section_index: int | None = None
        self.error: Exception | None = None

    def _transition(self, state: EngineState) -> None:
        logger.debug("Engine: %s → %s", self.state.value, state.value)
        self.state = state

    # ── Planning ────────────────────────────────────────────────

    def plan(
        self,
        sections: list[Section],
        only: list[str] | None = None,
    ) -> list[tuple[Section, Backend]]:
        """Order sections and resolve each one's backend.

        Raises:
            ConfigValidationError: Malformed graph or unknown backend id.
            CyclicDependencyError: The dependency graph has a cycle.
        """
        ordered = plan_execution(sections, only=only)

        # Every declared section must resolve, selected or not
        backends: dict[str, Backend] = {}
        for section in sections:
            backend = self.registry.get(section.backend)
            if backend is None:
                raise ConfigValidationError(
                    f"Section '{section.name}' uses unknown backend '{section.backend}'. "
                    f"Known backends: {', '.join(self.registry.list_backends())}"
                )
            backends[section.name] = backend

        return [(section, backends[section.name]) for section in ordered]

    # ── Execution ───────────────────────────────────────────────

    def run(
        self,
        sections: list[Section],
        only: list[str] | None = None,
    ) -> RunReport:
        """Plan and execute a full run.

        Only ConfigValidationError and CyclicDependencyError escape,
        and both are raised before any backend is touched.
        """
        self._transition(EngineState.PLANNING)
        try:
            planned = self.plan(sections, only=only)
        except (ConfigValidationError, CyclicDependencyError) as e:
            self.error = e
            self._transition(EngineState.ABORTED)
            logger.info("Planning aborted: %s", e)
            raise

        aggregator = ResultAggregator(dry_run=self.dry_run)
        self._transition(EngineState.EXECUTING)

        halted = False
        for index, (section, backend) in enumerate(planned):
            self.section_index = index
            if halted:
                aggregator.mark_not_run(section, self._tasks(section, backend))
                continue

            status = self._run_section(section, backend, aggregator)
            logger.info("Section %s → %s", section.name, status.value)

            if status == SectionStatus.FAILED and self.settings.fail_fast:
                logger.info("fail_fast: halting after section '%s'", section.name)
                aggregator.halt()
                halted = True

        self._transition(EngineState.DONE)
        return aggregator.finalize()

    @staticmethod
    def _tasks(section: Section, backend: Backend) -> list[InstallTask]:
        return [
            InstallTask(section=section.name, item=item, backend=backend.name)
            for item in section.items
        ]

    def _run_section(
        self,
        section: Section,
        backend: Backend,
        aggregator: ResultAggregator,
    ) -> SectionStatus:
        aggregator.open_section(section)
        tasks = self._tasks(section, backend)

        if not tasks:
            logger.debug("Section %s declares no items", section.name)
            return aggregator.close_section(section.name)

        # ── Runtime ──
        if not backend.is_runtime_available():
            try:
                prerequisite = self._ensure_runtime(section, backend, aggregator)
            except RuntimeUnavailableError as e:
                aggregator.fail_section(section.name, e, pending=tasks)
                return SectionStatus.FAILED
            if prerequisite is not None:
                # Dry run: the runtime would be installed first, items cannot be diffed
                for task in tasks:
                    aggregator.record(TaskOutcome.not_attempted(task, reason=DRY_RUN_REASON))
                return aggregator.close_section(section.name)

        # ── Diff ──
        try:
            diff = diff_section(section, backend)
        except BackendQueryError as e:
            aggregator.fail_section(section.name, e, pending=tasks)
            return SectionStatus.FAILED

        missing = set(diff.missing)
        to_install: list[InstallTask] = []
        for task in tasks:
            if task.item in missing:
                to_install.append(task)
            else:
                aggregator.record(TaskOutcome.skip(task))

        if not to_install:
            logger.info("%s: all %d item(s) already installed", section.name, len(tasks))
            return aggregator.close_section(section.name)

        # ── Install ──
        if self.dry_run:
            for task in to_install:
                aggregator.record(TaskOutcome.not_attempted(task, reason=DRY_RUN_REASON))
            return aggregator.close_section(section.name)

        logger.info(
            "%s: installing %d item(s) with up to %d in parallel",
            section.name,
            len(to_install),
            self.settings.max_parallel,
        )
        backend.install_many(
            to_install,
            max_parallel=self.settings.max_parallel,
            fail_fast=self.settings.fail_fast,
            on_outcome=aggregator.record,
        )
        return aggregator.close_section(section.name)

    def _ensure_runtime(
        self,
        section: Section,
        backend: Backend,
        aggregator: ResultAggregator,
    ) -> InstallTask | None:
        """Install a missing runtime through its bootstrap backend.

        Returns:
            The prerequisite task when it was only recorded (dry run),
            otherwise None once the runtime is available.

        Raises:
            RuntimeUnavailableError: No way to provide the runtime, or
                the prerequisite install failed.
        """
        missing = f"'{backend.runtime_command}' not found on PATH"
        if backend.bootstrap is None:
            hint = f"\n{backend.install_hint}" if backend.install_hint else ""
            raise RuntimeUnavailableError(backend.name, missing + hint)

        provider_name, runtime_item = backend.bootstrap
        provider = self.registry.get(provider_name)
        if provider is None or not provider.is_runtime_available():
            raise RuntimeUnavailableError(
                backend.name,
                f"{missing} and {provider_name} is not available to install {runtime_item}",
            )

        task = InstallTask(
            section=section.name,
            item=runtime_item,
            backend=provider_name,
            prerequisite=True,
        )
        if self.dry_run:
            aggregator.record(TaskOutcome.not_attempted(task, reason=DRY_RUN_REASON))
            return task

        logger.info("%s: %s, installing %s via %s", section.name, missing, runtime_item, provider_name)
        outcome = execute_task(task, lambda t: provider.install_item(t.item))
        aggregator.record(outcome)

        if outcome.failed:
            raise RuntimeUnavailableError(
                backend.name,
                f"installing {runtime_item} via {provider_name} failed: {outcome.reason}",
            )
        if not backend.is_runtime_available():
            raise RuntimeUnavailableError(
                backend.name,
                f"{runtime_item} installed via {provider_name} but {missing}",
            )
        return None
