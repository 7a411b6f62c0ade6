"""
Bounded worker pool — run install tasks with at most N in flight.

Every task ends as a TaskOutcome. Item-level errors are recovered
here and never unwind past the pool.

Cancellation (fail_fast) is cooperative: the first required failure
sets a stop flag. Tasks that start after that point are recorded as
cancelled without being attempted; tasks already running finish
normally and their outcomes are still reported.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed

from macup.core.errors import ConfigValidationError, InstallError
from macup.core.models.task import InstallTask, TaskOutcome

logger = logging.getLogger(__name__)

InstallFn = Callable[[InstallTask], None]
OutcomeCallback = Callable[[TaskOutcome], None]


def execute_task(task: InstallTask, work: InstallFn) -> TaskOutcome:
    """Run one task and fold any error into its outcome."""
    start = time.monotonic()
    try:
        work(task)
    except InstallError as e:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        if e.required:
            logger.info("✗ %s (%s)", task.key, e)
        else:
            logger.warning("⚠ %s failed but is optional: %s", task.key, e)
        return TaskOutcome.failure(
            task,
            error_kind=e.kind,
            reason=str(e),
            duration_ms=elapsed_ms,
            required=e.required,
        )
    except Exception as e:
        # Backends should raise InstallError, but a crash must not kill the pool
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.error("Backend %s raised during install of %s: %s", task.backend, task.item, e)
        return TaskOutcome.failure(
            task,
            error_kind=InstallError.kind,
            reason=f"Unexpected error: {e}",
            duration_ms=elapsed_ms,
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info("✓ %s", task.key)
    return TaskOutcome.succeeded(task, duration_ms=elapsed_ms)


def run_bounded(
    tasks: list[InstallTask],
    work: InstallFn,
    *,
    max_parallel: int,
    fail_fast: bool = False,
    on_outcome: OutcomeCallback | None = None,
) -> list[TaskOutcome]:
    """Run ``work`` over ``tasks`` on a fixed-size thread pool.

    Args:
        tasks: Tasks in submission order.
        work: Callable performing one install; raises InstallError on failure.
        max_parallel: Pool size (must be >= 1).
        fail_fast: Stop starting new tasks after the first required failure.
        on_outcome: Called from the worker thread as soon as each task
            completes. Must be thread-safe.

    Returns:
        Outcomes in submission order.
    """
    if max_parallel < 1:
        raise ConfigValidationError(f"max_parallel must be >= 1, got {max_parallel}")
    if not tasks:
        return []

    stop = threading.Event()

    def _attempt(task: InstallTask) -> TaskOutcome:
        if stop.is_set():
            outcome = TaskOutcome.cancel(task)
        else:
            outcome = execute_task(task, work)
            if fail_fast and outcome.blocking:
                stop.set()
        if on_outcome is not None:
            on_outcome(outcome)
        return outcome

    results: list[TaskOutcome | None] = [None] * len(tasks)
    with ThreadPoolExecutor(
        max_workers=max_parallel,
        thread_name_prefix="macup-install",
    ) as pool:
        futures = {pool.submit(_attempt, task): idx for idx, task in enumerate(tasks)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    return [r for r in results if r is not None]
