"""
Error taxonomy — what can go wrong during a provisioning run.

Fatal errors (raised before any side effect, abort the whole run):
    ConfigValidationError   malformed sections or settings
    CyclicDependencyError   the section graph has a cycle

Section-level errors (recorded in the section's status):
    BackendQueryError       listing installed items failed
    RuntimeUnavailableError backend tool missing and not auto-installable

Item-level errors (recorded as a failed outcome, never propagated):
    InstallError            one item failed to install
"""

from __future__ import annotations


class MacupError(Exception):
    """Base class for all macup errors."""

    kind: str = "MacupError"


class ConfigError(MacupError):
    """Raised when the configuration file is missing or unreadable."""

    kind = "ConfigError"


class ConfigValidationError(ConfigError):
    """Raised when sections or settings are malformed."""

    kind = "ConfigValidationError"


class CyclicDependencyError(MacupError):
    """Raised when ``depends_on`` relationships form a cycle.

    Attributes:
        cycle: Section names along the cycle, first name repeated at the end.
    """

    kind = "CyclicDependencyError"

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' → '.join(self.cycle)}")


class BackendQueryError(MacupError):
    """Raised when a backend cannot report its installed items."""

    kind = "BackendQueryError"

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class RuntimeUnavailableError(MacupError):
    """Raised when a backend's tool is missing and cannot be installed."""

    kind = "RuntimeUnavailableError"

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class InstallError(MacupError):
    """Raised by a backend when a single item fails to install."""

    kind = "InstallError"

    def __init__(
        self,
        backend: str,
        item: str,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
        required: bool = True,
    ):
        self.backend = backend
        self.item = item
        self.exit_code = exit_code
        self.stderr = stderr
        self.required = required
        super().__init__(message)
