"""
Domain models — Pydantic types for vhostctl.

All models are re-exported here for convenient access:

    from vhostctl.core.models import Site, Settings, Command, CommandResult
"""

from vhostctl.core.models.command import Command, CommandResult
from vhostctl.core.models.report import ProvisionReport, StepRecord
from vhostctl.core.models.settings import CommandSettings, Settings
from vhostctl.core.models.site import RuntimeSpec, Site
from vhostctl.core.models.transcript import Transcript

__all__ = [
    # command.py
    "Command",
    "CommandResult",
    # report.py
    "ProvisionReport",
    "StepRecord",
    # settings.py
    "CommandSettings",
    "Settings",
    # site.py
    "RuntimeSpec",
    "Site",
    # transcript.py
    "Transcript",
]
