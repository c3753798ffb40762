"""
Executor base — the protocol contract between services and processes.

Every component that needs an external command talks to an Executor,
never to ``subprocess`` directly. That keeps the one place where
processes are spawned small, and lets tests swap in a recording mock.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from vhostctl.core.models.command import Command, CommandResult

logger = logging.getLogger(__name__)

# Exit status reported when execution is disabled or the program is missing
EXIT_NOT_AVAILABLE = 127


class Executor(ABC):
    """Abstract base class for command executors.

    Executors run commands and return results.
    They NEVER raise exceptions — failures are captured in the CommandResult.

    To create a new executor:
        1. Subclass Executor
        2. Implement name, is_available, _execute
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The executor identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether command execution is permitted in this environment.

        Returns False when execution has been administratively disabled.
        Should be fast and never raise.
        """

    @abstractmethod
    def _execute(self, command: Command) -> CommandResult:
        """Run the command. Only called when is_available() is True."""

    def run(self, command: Command) -> CommandResult:
        """Run a command, honoring the disabled-execution switch.

        When execution is disabled nothing is spawned: the result fails
        with exit code 127 and a diagnostic message.
        """
        if not self.is_available():
            logger.warning("Command execution disabled; not running: %s", command.display)
            return CommandResult(
                command=command,
                exit_code=EXIT_NOT_AVAILABLE,
                disabled=True,
                output=(
                    "Command execution is disabled for this process "
                    "(exec_disabled / VHOSTCTL_EXEC_DISABLED).\n"
                    f"Command: {command.display}"
                ),
            )

        try:
            return self._execute(command)
        except Exception as e:
            # Executors should never raise, but defense in depth
            logger.error("Executor %s raised for %s: %s", self.name, command.display, e)
            return CommandResult(
                command=command,
                exit_code=-1,
                output=f"Unexpected execution error: {e}",
            )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
