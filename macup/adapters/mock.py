"""
Mock backend — universal test double for the capability contract.

Simulates a package manager without touching external tools.
Configurable installed set, per-item failures, query failures,
runtime availability, and an artificial install delay. Records every
call and the peak number of concurrent installs.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from macup.adapters.base import Backend
from macup.core.errors import BackendQueryError, InstallError


class MockBackend(Backend):
    """Universal mock backend for testing.

    By default every install succeeds and the item becomes installed.
    """

    def __init__(
        self,
        backend_name: str = "mock",
        installed: set[str] | None = None,
        available: bool = True,
        install_delay: float = 0.0,
        bootstrap: tuple[str, str] | None = None,
    ):
        self._name = backend_name
        self._installed: set[str] = set(installed or ())
        self._available = available
        self._install_delay = install_delay
        self.bootstrap = bootstrap
        self.runtime_command = backend_name
        self._failures: dict[str, tuple[str, bool]] = {}
        self._query_error: str | None = None
        # Called with the item after each successful install
        self.on_install: Callable[[str], None] | None = None

        self._lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0
        self.install_calls: list[str] = []
        self.list_calls = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def installed(self) -> set[str]:
        with self._lock:
            return set(self._installed)

    @property
    def call_count(self) -> int:
        """Number of times install_item has been called."""
        return len(self.install_calls)

    def is_runtime_available(self) -> bool:
        return self._available

    def set_available(self, available: bool) -> None:
        self._available = available

    def set_failure(self, item: str, error: str = "Mock failure", required: bool = True) -> None:
        """Configure a specific item to fail on install."""
        self._failures[item] = (error, required)

    def set_query_error(self, error: str | None = "Mock query failure") -> None:
        """Make list_installed fail (or succeed again with None)."""
        self._query_error = error

    def list_installed(self) -> set[str]:
        with self._lock:
            self.list_calls += 1
        if self._query_error is not None:
            raise BackendQueryError(self._name, self._query_error)
        return self.installed

    def install_item(self, item: str) -> None:
        with self._lock:
            self.install_calls.append(item)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self._install_delay:
                time.sleep(self._install_delay)
            if item in self._failures:
                error, required = self._failures[item]
                raise InstallError(self._name, item, error, exit_code=1, required=required)
            with self._lock:
                self._installed.add(item)
        finally:
            with self._lock:
                self._in_flight -= 1
        if self.on_install is not None:
            self.on_install(item)

    def reset(self) -> None:
        """Clear call log and configured failures."""
        with self._lock:
            self.install_calls.clear()
            self.list_calls = 0
            self.max_in_flight = 0
        self._failures.clear()
        self._query_error = None
