"""
Homebrew backends — formulae, casks, and taps.

All three share the ``brew`` runtime. Auto-update is disabled on every
invocation so parallel installs do not race on ``brew update``.
"""

from __future__ import annotations

import logging

from macup.adapters.base import Backend
from macup.adapters.shell.command import CommandResult, run_command
from macup.core.engine.pool import OutcomeCallback
from macup.core.errors import BackendQueryError, InstallError
from macup.core.models.task import InstallTask, TaskOutcome

logger = logging.getLogger(__name__)

_BREW_ENV = {"HOMEBREW_NO_AUTO_UPDATE": "1"}

HOMEBREW_INSTALL_HINT = (
    "Homebrew is not installed. Install it with:\n"
    '/bin/bash -c "$(curl -fsSL https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"'
)


def _brew(*args: str) -> CommandResult:
    return run_command(["brew", *args], env_overrides=_BREW_ENV)


def _parse_lines(stdout: str) -> set[str]:
    """One identifier per line, blanks dropped."""
    return {line.strip() for line in stdout.splitlines() if line.strip()}


class _BrewFamily(Backend):
    """Shared list/install plumbing for the brew-based backends."""

    runtime_command = "brew"
    install_hint = HOMEBREW_INSTALL_HINT
    _list_args: tuple[str, ...] = ()
    _install_args: tuple[str, ...] = ()

    def list_installed(self) -> set[str]:
        try:
            result = _brew(*self._list_args)
        except OSError as e:
            raise BackendQueryError(self.name, f"cannot run brew: {e}") from e
        if not result.ok:
            raise BackendQueryError(
                self.name,
                f"'brew {' '.join(self._list_args)}' failed: {result.error_summary()}",
            )
        return _parse_lines(result.stdout)

    def install_item(self, item: str) -> None:
        logger.info("→ Installing %s (%s)...", item, self.name)
        try:
            result = _brew(*self._install_args, item)
        except OSError as e:
            raise InstallError(self.name, item, f"cannot run brew: {e}") from e
        if not result.ok:
            raise InstallError(
                self.name,
                item,
                f"brew {' '.join(self._install_args)} {item} failed: {result.error_summary()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )


class BrewBackend(_BrewFamily):
    """Homebrew formulae."""

    display_name = "Homebrew formulae"
    _list_args = ("list", "--formula")
    _install_args = ("install",)

    @property
    def name(self) -> str:
        return "brew"


class BrewCaskBackend(_BrewFamily):
    """Homebrew casks (GUI applications)."""

    display_name = "Homebrew casks"
    _list_args = ("list", "--cask")
    _install_args = ("install", "--cask")

    @property
    def name(self) -> str:
        return "brew-cask"


class BrewTapBackend(_BrewFamily):
    """Homebrew taps (third-party repositories).

    Taps mutate brew's shared repository state, so they are added one
    at a time regardless of ``max_parallel``.
    """

    display_name = "Homebrew taps"
    _list_args = ("tap",)
    _install_args = ("tap",)

    @property
    def name(self) -> str:
        return "brew-tap"

    def install_many(
        self,
        tasks: list[InstallTask],
        *,
        max_parallel: int = 4,
        fail_fast: bool = False,
        on_outcome: OutcomeCallback | None = None,
    ) -> list[TaskOutcome]:
        return super().install_many(
            tasks,
            max_parallel=1,
            fail_fast=fail_fast,
            on_outcome=on_outcome,
        )
