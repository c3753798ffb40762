"""Adapters — process execution and privileged file operations.

Public re-exports for convenient access.
"""

from vhostctl.adapters.base import Executor
from vhostctl.adapters.mock import MockExecutor
from vhostctl.adapters.shell.command import ShellExecutor
from vhostctl.adapters.shell.privileged import PrivilegedFileWriter

__all__ = [
    "Executor",
    "MockExecutor",
    "PrivilegedFileWriter",
    "ShellExecutor",
]
