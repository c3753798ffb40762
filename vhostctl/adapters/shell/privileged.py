"""
Privileged file writer — mutate files owned by a more privileged user.

The hosts file and the nginx configuration directories belong to root.
Every mutation of them goes through the configured non-interactive
escalation prefix (``sudo -n`` by default), which fails immediately
instead of prompting for a password.

File content is piped to ``tee`` on stdin, so it never shows up in an
argv list or a transcript.
"""

from __future__ import annotations

import logging

from vhostctl.adapters.base import Executor
from vhostctl.core.models.command import Command, CommandResult
from vhostctl.core.models.settings import CommandSettings
from vhostctl.core.models.transcript import Transcript

logger = logging.getLogger(__name__)


class PrivilegedFileWriter:
    """Run escalated file operations through an Executor.

    Every method records the command and its output in the transcript
    and returns the CommandResult (truthy on success).
    """

    def __init__(self, executor: Executor, commands: CommandSettings | None = None):
        self._executor = executor
        self._commands = commands or CommandSettings()

    @property
    def executor(self) -> Executor:
        return self._executor

    def escalate(self, argv: list[str]) -> Command:
        """Build an escalated command from a plain argv list."""
        return Command(argv=list(argv)).with_prefix(list(self._commands.escalate))

    def run(self, command: Command, transcript: Transcript | None = None) -> CommandResult:
        """Run an already-escalated command and record it."""
        result = self._executor.run(command)
        if transcript is not None:
            transcript.record(result)
        return result

    def can_escalate(self, transcript: Transcript | None = None) -> CommandResult:
        """Preflight: run a no-op through the escalation prefix."""
        result = self.run(self.escalate(list(self._commands.noop)), transcript)
        if result.ok:
            logger.debug("Non-interactive escalation available")
        else:
            logger.warning("Non-interactive escalation unavailable: %s", result.output)
        return result

    def write(self, path: str, content: str, transcript: Transcript | None = None) -> CommandResult:
        """Replace ``path`` with ``content``."""
        command = self.escalate([*self._commands.tee, path]).model_copy(
            update={"stdin": content, "discard_stdout": True},
        )
        result = self.run(command, transcript)
        if result.ok:
            logger.info("Wrote %d bytes to %s", len(content.encode("utf-8", "surrogateescape")), path)
        return result

    def remove(self, path: str, transcript: Transcript | None = None) -> CommandResult:
        """Remove ``path``; a missing file is not an error."""
        result = self.run(self.escalate([*self._commands.remove, path]), transcript)
        if result.ok:
            logger.info("Removed %s", path)
        return result

    def symlink(self, target: str, link: str, transcript: Transcript | None = None) -> CommandResult:
        """Point ``link`` at ``target``, replacing any existing link."""
        result = self.run(self.escalate([*self._commands.symlink, target, link]), transcript)
        if result.ok:
            logger.info("Linked %s -> %s", link, target)
        return result
