"""
Domain models — Pydantic types for provisioning runs.

All models are re-exported here for convenient access:

    from macup.core.models import Config, Section, Settings, InstallTask, TaskOutcome
"""

from macup.core.models.config import Config
from macup.core.models.section import InstallScript, Section, Settings
from macup.core.models.task import InstallTask, OutcomeStatus, TaskOutcome

__all__ = [
    # config.py
    "Config",
    # section.py
    "InstallScript",
    "Section",
    "Settings",
    # task.py
    "InstallTask",
    "OutcomeStatus",
    "TaskOutcome",
]
