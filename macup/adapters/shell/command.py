"""
Command runner — the single place where external tools are spawned.

Every backend lists and installs through ``run_command`` or
``run_shell``. Tests monkeypatch these two functions instead of
touching ``subprocess``.

No timeout is applied: a hanging package manager hangs its worker.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Keep the tail of noisy installer output only
_OUTPUT_TAIL = 4000


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one external process."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def error_summary(self) -> str:
        """Last non-empty stderr line, or a generic exit-code message."""
        lines = [ln for ln in self.stderr.strip().splitlines() if ln.strip()]
        if lines:
            return lines[-1].strip()
        return f"exited with code {self.returncode}"


def command_exists(name: str) -> bool:
    """Check whether ``name`` resolves to an executable on PATH."""
    return shutil.which(name) is not None


def run_command(
    args: list[str],
    *,
    env_overrides: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command without a shell and capture its output.

    Raises:
        FileNotFoundError: If the executable does not exist.
        OSError: If the process cannot be spawned.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Executing: %s", " ".join(args))
    start = time.monotonic()
    proc = subprocess.run(
        args,
        capture_output=True,
        text=True,
        env=env,
    )
    elapsed_ms = int((time.monotonic() - start) * 1000)

    result = CommandResult(
        args=tuple(args),
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=(proc.stderr or "")[-_OUTPUT_TAIL:],
        duration_ms=elapsed_ms,
    )
    if not result.ok:
        logger.debug("Command failed (exit %d): %s", result.returncode, " ".join(args))
    return result


def run_shell(command: str) -> CommandResult:
    """Run a shell snippet through ``sh -c``."""
    return run_command(["sh", "-c", command])
