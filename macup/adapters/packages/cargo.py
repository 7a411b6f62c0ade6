"""
cargo backend — Rust binaries installed with ``cargo install``.

The runtime (rust toolchain) is installed through Homebrew when missing.
"""

from __future__ import annotations

import logging

from macup.adapters.base import Backend
from macup.adapters.shell.command import run_command
from macup.core.errors import BackendQueryError, InstallError

logger = logging.getLogger(__name__)


def parse_install_list(stdout: str) -> set[str]:
    """Extract crate names from ``cargo install --list`` output.

    Crate lines are unindented (``ripgrep v14.1.0:``); the binaries
    they provide follow on indented lines and are ignored.
    """
    crates: set[str] = set()
    for line in stdout.splitlines():
        if not line or line[0].isspace() or " " not in line:
            continue
        crates.add(line.split()[0])
    return crates


class CargoBackend(Backend):
    """Crates installed as binaries via ``cargo install``."""

    display_name = "cargo packages"
    runtime_command = "cargo"
    bootstrap = ("brew", "rust")

    @property
    def name(self) -> str:
        return "cargo"

    def list_installed(self) -> set[str]:
        try:
            result = run_command(["cargo", "install", "--list"])
        except OSError as e:
            raise BackendQueryError(self.name, f"cannot run cargo: {e}") from e
        if not result.ok:
            raise BackendQueryError(
                self.name, f"'cargo install --list' failed: {result.error_summary()}"
            )
        return parse_install_list(result.stdout)

    def install_item(self, item: str) -> None:
        logger.info("→ Installing %s (cargo)...", item)
        try:
            result = run_command(["cargo", "install", item])
        except OSError as e:
            raise InstallError(self.name, item, f"cannot run cargo: {e}") from e
        if not result.ok:
            raise InstallError(
                self.name,
                item,
                f"cargo install {item} failed: {result.error_summary()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
