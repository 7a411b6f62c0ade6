"""
Backend base — the capability contract between engine and package managers.

This defines the abstract interface every backend must implement.
The engine only talks to backends through this contract, never
directly to external tools.

To create a new backend:
    1. Subclass Backend
    2. Implement name, list_installed, install_item
    3. Set runtime_command (and bootstrap, if the runtime can be
       installed through another backend)
    4. Register it in the BackendRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from macup.adapters.shell.command import command_exists
from macup.core.engine.pool import OutcomeCallback, run_bounded
from macup.core.models.task import InstallTask, TaskOutcome


class Backend(ABC):
    """Abstract base class for all package-manager backends.

    ``list_installed`` raises BackendQueryError when the query fails.
    ``install_item`` raises InstallError when the install fails.
    Both must be safe to call from several worker threads at once.
    """

    display_name: str = ""
    runtime_command: str = ""
    install_hint: str = ""
    # (backend, item) whose install provides this backend's runtime
    bootstrap: tuple[str, str] | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """The backend identifier used in config sections (e.g., 'brew', 'npm')."""

    def is_runtime_available(self) -> bool:
        """Check if this backend's underlying tool is on PATH.

        Should be fast and never raise.
        """
        if not self.runtime_command:
            return True
        return command_exists(self.runtime_command)

    @abstractmethod
    def list_installed(self) -> set[str]:
        """Return identifiers of all currently installed items.

        Raises:
            BackendQueryError: If the query command fails.
        """

    def installed_among(self, items: list[str]) -> set[str]:
        """Return which of ``items`` are installed.

        The default is one ``list_installed`` query. Override when the
        query can be limited to the requested items.

        Raises:
            BackendQueryError: If the query command fails.
        """
        present = self.list_installed()
        return {item for item in items if item in present}

    def is_installed(self, item: str) -> bool:
        """Check a single item. Override when the tool has a cheaper query."""
        return item in self.list_installed()

    @abstractmethod
    def install_item(self, item: str) -> None:
        """Install one item.

        Raises:
            InstallError: If the tool reports a failure.
        """

    def install_many(
        self,
        tasks: list[InstallTask],
        *,
        max_parallel: int = 4,
        fail_fast: bool = False,
        on_outcome: OutcomeCallback | None = None,
    ) -> list[TaskOutcome]:
        """Install several items with at most ``max_parallel`` in flight.

        Override for tools that install in batches or must not run
        concurrently.
        """
        return run_bounded(
            tasks,
            lambda task: self.install_item(task.item),
            max_parallel=max_parallel,
            fail_fast=fail_fast,
            on_outcome=on_outcome,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
