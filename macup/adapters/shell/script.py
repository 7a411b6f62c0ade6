"""
Script backend — ad-hoc install scripts with optional check commands.

Each item is the name of a declared InstallScript. A script counts as
installed when its ``check`` command exits 0; scripts without a check
always run. After running, the check is repeated to verify the install.
"""

from __future__ import annotations

import logging

from macup.adapters.base import Backend
from macup.adapters.shell.command import run_shell
from macup.core.errors import BackendQueryError, InstallError
from macup.core.models.section import InstallScript

logger = logging.getLogger(__name__)


class ScriptBackend(Backend):
    """Runs declared shell scripts through ``sh -c``."""

    display_name = "install scripts"
    runtime_command = "sh"

    def __init__(self, scripts: list[InstallScript] | None = None):
        self._scripts: dict[str, InstallScript] = {s.name: s for s in scripts or []}

    @property
    def name(self) -> str:
        return "script"

    @property
    def scripts(self) -> dict[str, InstallScript]:
        return dict(self._scripts)

    def _passes_check(self, script: InstallScript) -> bool:
        if not script.check:
            return False
        try:
            return run_shell(script.check).ok
        except OSError as e:
            raise BackendQueryError(self.name, f"cannot run check for '{script.name}': {e}") from e

    def list_installed(self) -> set[str]:
        return self.installed_among(list(self._scripts))

    def installed_among(self, items: list[str]) -> set[str]:
        # Only the named scripts' checks run
        found: set[str] = set()
        for item in items:
            script = self._scripts.get(item)
            if script is not None and self._passes_check(script):
                found.add(item)
        return found

    def is_installed(self, item: str) -> bool:
        script = self._scripts.get(item)
        return script is not None and self._passes_check(script)

    def install_item(self, item: str) -> None:
        script = self._scripts.get(item)
        if script is None:
            raise InstallError(self.name, item, f"No script named '{item}' is declared")

        logger.info("→ Running install script %s...", item)
        try:
            result = run_shell(script.command)
        except OSError as e:
            raise InstallError(
                self.name, item, f"cannot run script: {e}", required=script.required,
            ) from e
        if not result.ok:
            raise InstallError(
                self.name,
                item,
                f"script '{item}' failed: {result.error_summary()}",
                exit_code=result.returncode,
                stderr=result.stderr,
                required=script.required,
            )

        if script.check and not self._verify(script):
            raise InstallError(
                self.name,
                item,
                f"{item} installed but verification failed",
                required=script.required,
            )

    def _verify(self, script: InstallScript) -> bool:
        try:
            return self._passes_check(script)
        except BackendQueryError:
            return False
