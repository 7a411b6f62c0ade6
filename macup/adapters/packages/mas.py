"""
mas backend — Mac App Store apps, addressed by numeric app id.

``mas`` itself is a Homebrew formula and is installed through brew
when missing.
"""

from __future__ import annotations

import logging

from macup.adapters.base import Backend
from macup.adapters.shell.command import run_command
from macup.core.errors import BackendQueryError, InstallError

logger = logging.getLogger(__name__)


def parse_mas_list(stdout: str) -> set[str]:
    """Extract app ids from ``mas list`` output (``<id>  <name> (<version>)``)."""
    ids: set[str] = set()
    for line in stdout.splitlines():
        parts = line.split()
        if parts:
            ids.add(parts[0])
    return ids


class MasBackend(Backend):
    """Mac App Store apps (``mas install <id>``)."""

    display_name = "Mac App Store apps"
    runtime_command = "mas"
    bootstrap = ("brew", "mas")

    @property
    def name(self) -> str:
        return "mas"

    def list_installed(self) -> set[str]:
        try:
            result = run_command(["mas", "list"])
        except OSError as e:
            raise BackendQueryError(self.name, f"cannot run mas: {e}") from e
        if not result.ok:
            raise BackendQueryError(self.name, f"'mas list' failed: {result.error_summary()}")
        return parse_mas_list(result.stdout)

    def install_item(self, item: str) -> None:
        logger.info("→ Installing app %s...", item)
        try:
            result = run_command(["mas", "install", item])
        except OSError as e:
            raise InstallError(self.name, item, f"cannot run mas: {e}") from e
        if not result.ok:
            raise InstallError(
                self.name,
                item,
                f"mas install {item} failed: {result.error_summary()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
