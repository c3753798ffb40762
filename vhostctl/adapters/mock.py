"""
Mock executor — test double for every command the engine runs.

Simulates command execution without spawning processes. By default
every command succeeds; individual commands can be scripted to fail
(or return custom output) by matching on their display string.
"""

from __future__ import annotations

from vhostctl.adapters.base import Executor
from vhostctl.core.models.command import Command, CommandResult


class MockExecutor(Executor):
    """Recording executor for tests and dry runs.

    Rules are matched by substring against ``Command.display``; the most
    recently added matching rule wins.
    """

    def __init__(
        self,
        executor_name: str = "mock",
        available: bool = True,
        default_output: str = "",
    ):
        self._name = executor_name
        self._available = available
        self._default_output = default_output
        self._rules: list[tuple[str, int, str]] = []
        self._calls: list[Command] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def calls(self) -> list[Command]:
        """Every command this mock has executed."""
        return self._calls

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def displays(self) -> list[str]:
        """Display form of every executed command, in order."""
        return [c.display for c in self._calls]

    def is_available(self) -> bool:
        return self._available

    def set_available(self, available: bool) -> None:
        self._available = available

    def set_result(self, match: str, exit_code: int = 0, output: str = "") -> None:
        """Script the result of every command whose display contains ``match``."""
        self._rules.append((match, exit_code, output))

    def set_failure(self, match: str, output: str = "Mock failure", exit_code: int = 1) -> None:
        """Configure matching commands to fail."""
        self.set_result(match, exit_code=exit_code, output=output)

    def ran(self, match: str) -> bool:
        """Whether any executed command contains ``match``."""
        return any(match in display for display in self.displays)

    def _execute(self, command: Command) -> CommandResult:
        self._calls.append(command)
        display = command.display
        for match, exit_code, output in reversed(self._rules):
            if match in display:
                return CommandResult(command=command, exit_code=exit_code, output=output)
        return CommandResult(command=command, exit_code=0, output=self._default_output)

    def reset(self) -> None:
        """Clear call log and scripted rules."""
        self._calls.clear()
        self._rules.clear()
