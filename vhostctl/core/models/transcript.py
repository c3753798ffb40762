"""
Transcript — the append-only, human-readable log of one provisioning run.

Every component that runs a command records it here, including failed
fallback attempts, so the final log explains what happened without
re-running anything. Meant for people, not for parsing.
"""

from __future__ import annotations

from vhostctl.core.models.command import CommandResult


class Transcript:
    """Accumulates step headers, command records, and notes."""

    def __init__(self) -> None:
        self._chunks: list[str] = []
        self._results: list[CommandResult] = []

    def section(self, title: str) -> None:
        """Start a new step section."""
        prefix = "\n" if self._chunks else ""
        self._chunks.append(f"{prefix}== {title} ==\n")

    def record(self, result: CommandResult) -> None:
        """Append a command line and its combined output."""
        self._results.append(result)
        output = result.output.rstrip("\n")
        status = "ok" if result.ok else f"exit {result.exit_code}"
        self._chunks.append(f"\n$ {result.command.display}\n")
        if output:
            self._chunks.append(f"{output}\n")
        self._chunks.append(f"[{status}]\n")

    def note(self, message: str) -> None:
        self._chunks.append(f"\n{message}\n")

    def error(self, message: str) -> None:
        self.note(f"ERROR: {message}")

    @property
    def results(self) -> list[CommandResult]:
        """Every command result recorded so far, in order."""
        return list(self._results)

    @property
    def commands(self) -> list[str]:
        """Display form of every recorded command, in order."""
        return [r.command.display for r in self._results]

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def __str__(self) -> str:
        return self.text
