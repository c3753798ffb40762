"""
Shell command executor — run one external command and capture its output.

Commands are argv lists handed straight to ``subprocess.run``; no shell
is involved, so dynamic values never need escaping. Standard output and
standard error are merged into a single stream.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from vhostctl.adapters.base import EXIT_NOT_AVAILABLE, Executor
from vhostctl.core.models.command import Command, CommandResult

logger = logging.getLogger(__name__)

# Environment switch that blocks all command execution
EXEC_DISABLED_ENV_VAR = "VHOSTCTL_EXEC_DISABLED"

# Exit status reported for a timed-out command (matches timeout(1))
EXIT_TIMEOUT = 124

_TRUTHY = {"1", "true", "yes", "on"}


class ShellExecutor(Executor):
    """Execute commands with ``subprocess`` and capture combined output.

    Args:
        timeout: Seconds before a command is killed.
        exec_disabled: Administrative switch; when True nothing runs.
    """

    def __init__(self, timeout: float = 120.0, exec_disabled: bool = False):
        self._timeout = timeout
        self._exec_disabled = exec_disabled

    @property
    def name(self) -> str:
        return "shell"

    @property
    def timeout(self) -> float:
        return self._timeout

    def is_available(self) -> bool:
        if self._exec_disabled:
            return False
        return os.environ.get(EXEC_DISABLED_ENV_VAR, "").strip().lower() not in _TRUTHY

    def _execute(self, command: Command) -> CommandResult:
        logger.debug("Executing: %s", command.display)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command.argv,
                input=_encode_stdin(command.stdin),
                stdout=subprocess.DEVNULL if command.discard_stdout else subprocess.PIPE,
                stderr=subprocess.PIPE if command.discard_stdout else subprocess.STDOUT,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.error("Command timed out after %ss: %s", self._timeout, command.display)
            return CommandResult(
                command=command,
                exit_code=EXIT_TIMEOUT,
                timed_out=True,
                output=f"Command timed out after {self._timeout:g}s",
                duration_ms=_elapsed_ms(start),
            )
        except FileNotFoundError:
            logger.error("Command not found: %s", command.program)
            return CommandResult(
                command=command,
                exit_code=EXIT_NOT_AVAILABLE,
                output=f"Command not found: {command.program}",
                duration_ms=_elapsed_ms(start),
            )
        except PermissionError as e:
            return CommandResult(
                command=command,
                exit_code=126,
                output=f"Command not executable: {command.program} ({e})",
                duration_ms=_elapsed_ms(start),
            )

        raw = (result.stderr if command.discard_stdout else result.stdout) or b""
        output = raw.decode("utf-8", errors="replace")
        elapsed_ms = _elapsed_ms(start)

        if result.returncode != 0:
            logger.warning(
                "Command failed (code %d): %s\n  Output: %s",
                result.returncode,
                command.display,
                output.strip(),
            )
        else:
            logger.debug("Command ok in %dms: %s", elapsed_ms, command.display)

        return CommandResult(
            command=command,
            exit_code=result.returncode,
            output=output.strip(),
            duration_ms=elapsed_ms,
        )


def _encode_stdin(text: str | None) -> bytes | None:
    # surrogateescape round-trips bytes read from files that are not UTF-8
    if text is None:
        return None
    return text.encode("utf-8", errors="surrogateescape")


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
