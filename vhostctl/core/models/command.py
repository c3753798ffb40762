"""
Command and CommandResult models — the execution contract.

A Command is a program path plus an argument list. It is never joined
into a shell string for execution; ``display`` quotes it with
``shlex.join`` for logs only. A CommandResult captures the full outcome.
The executor NEVER raises — failures are captured here.
"""

from __future__ import annotations

import shlex

from pydantic import BaseModel, Field


class Command(BaseModel):
    """A single external command to run."""

    argv: list[str] = Field(min_length=1)
    stdin: str | None = None         # text fed to the process on stdin
    discard_stdout: bool = False     # drop stdout, keep stderr (e.g. tee)

    @property
    def program(self) -> str:
        return self.argv[0]

    @property
    def display(self) -> str:
        """Shell-quoted command line, for transcripts and logs."""
        return shlex.join(self.argv)

    def with_prefix(self, prefix: list[str]) -> Command:
        """Return a copy of this command with ``prefix`` prepended to argv."""
        return self.model_copy(update={"argv": [*prefix, *self.argv]})


class CommandResult(BaseModel):
    """Outcome of running a Command."""

    command: Command
    exit_code: int = 0
    output: str = ""                 # stdout and stderr merged
    disabled: bool = False           # execution administratively blocked
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Whether the command succeeded (exit code zero)."""
        return self.exit_code == 0 and not self.disabled and not self.timed_out

    @property
    def failed(self) -> bool:
        return not self.ok

    def __bool__(self) -> bool:
        return self.ok
