"""
ProvisionReport — the result of one orchestrator run.

The transcript (``log``) is the human-facing artifact; the structured
fields are for the audit ledger and the CLI summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

StepStatus = Literal["ok", "failed"]


@dataclass
class StepRecord:
    """Outcome of a single pipeline step."""

    name: str
    status: StepStatus = "ok"
    error: str | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class ProvisionReport:
    """Result of an apply or remove run."""

    operation: str = ""              # provision, deprovision
    domain: str = ""
    log: str = ""
    steps: list[StepRecord] = field(default_factory=list)
    error_kind: str | None = None
    error: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error_kind is None and all(s.status == "ok" for s in self.steps)

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"

    @property
    def failed_step(self) -> str | None:
        for step in self.steps:
            if step.status == "failed":
                return step.name
        return None

    @property
    def step_names(self) -> list[str]:
        return [s.name for s in self.steps]

    def as_tuple(self) -> tuple[bool, str]:
        """The ``(ok, log)`` pair handed to callers."""
        return self.ok, self.log

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "domain": self.domain,
            "status": self.status,
            "failed_step": self.failed_step,
            "error_kind": self.error_kind,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "steps": [s.to_dict() for s in self.steps],
            "log": self.log,
        }
