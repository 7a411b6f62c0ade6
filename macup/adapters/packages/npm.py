"""
npm backend — globally installed Node.js packages.

The runtime (node + npm) is installed through Homebrew when missing.
"""

from __future__ import annotations

import logging

from macup.adapters.base import Backend
from macup.adapters.shell.command import run_command
from macup.core.errors import BackendQueryError, InstallError

logger = logging.getLogger(__name__)

_NODE_MODULES = "node_modules/"


def parse_parseable_listing(stdout: str) -> set[str]:
    """Extract package names from ``npm list -g --parseable`` output.

    Each line is an absolute path. The first line is the global prefix
    itself and has no ``node_modules/`` segment. Scoped packages keep
    their scope: ``.../node_modules/@scope/pkg`` → ``@scope/pkg``.
    """
    packages: set[str] = set()
    for line in stdout.splitlines():
        path = line.strip().replace("\\", "/")
        if _NODE_MODULES not in path:
            continue
        name = path.rsplit(_NODE_MODULES, 1)[1].strip("/")
        if name:
            packages.add(name)
    return packages


class NpmBackend(Backend):
    """Global npm packages (``npm install -g``)."""

    display_name = "npm packages"
    runtime_command = "npm"
    bootstrap = ("brew", "node")

    @property
    def name(self) -> str:
        return "npm"

    def list_installed(self) -> set[str]:
        try:
            result = run_command(["npm", "list", "-g", "--depth=0", "--parseable"])
        except OSError as e:
            raise BackendQueryError(self.name, f"cannot run npm: {e}") from e
        # npm exits 1 on peer-dependency warnings but still prints the tree
        if not result.ok and not result.stdout.strip():
            raise BackendQueryError(
                self.name, f"'npm list -g' failed: {result.error_summary()}"
            )
        return parse_parseable_listing(result.stdout)

    def is_installed(self, item: str) -> bool:
        try:
            result = run_command(["npm", "list", "-g", "--depth=0", item])
        except OSError as e:
            raise BackendQueryError(self.name, f"cannot run npm: {e}") from e
        return result.ok

    def install_item(self, item: str) -> None:
        logger.info("→ Installing %s (npm -g)...", item)
        try:
            result = run_command(["npm", "install", "-g", item])
        except OSError as e:
            raise InstallError(self.name, item, f"cannot run npm: {e}") from e
        if not result.ok:
            raise InstallError(
                self.name,
                item,
                f"npm install -g {item} failed: {result.error_summary()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
