"""
Audit ledger — append-only provisioning history.

Every provision and deprovision run writes an entry to an NDJSON
(newline-delimited JSON) file, including the full transcript. Because
failed runs are never rolled back, this is where an operator finds out
which system changes a half-finished run left behind.

The ledger is append-only: entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from vhostctl.core.models.report import ProvisionReport

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = ""       # provision, deprovision

    domain: str = ""
    enabled: bool | None = None
    php_version: str = ""

    # Results
    status: str = ""               # ok, failed
    steps_completed: list[str] = Field(default_factory=list)
    failed_step: str | None = None
    error_kind: str | None = None
    error: str | None = None
    duration_ms: int = 0

    transcript: str = ""
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: ProvisionReport, operation_id: str = "", **kwargs: Any) -> AuditEntry:
        return cls(
            operation_id=operation_id or generate_operation_id(),
            operation_type=report.operation,
            domain=report.domain,
            status=report.status,
            steps_completed=[s.name for s in report.steps if s.status == "ok"],
            failed_step=report.failed_step,
            error_kind=report.error_kind,
            error=report.error,
            duration_ms=report.duration_ms,
            transcript=report.log,
            **kwargs,
        )


class AuditWriter:
    """Append-only audit ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file is created if it doesn't exist.
    """

    def __init__(self, path: Path | None = None, state_dir: Path | None = None):
        if path is not None:
            self._path = path
        elif state_dir is not None:
            self._path = state_dir / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(".state") / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append an audit entry to the ledger.

        A ledger write failure is logged, never raised: losing an audit
        line must not turn a finished provisioning run into a failure.
        """
        data = entry.model_dump(mode="json")
        line = json.dumps(data, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s/%s", entry.operation_type, entry.operation_id)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries from the ledger, oldest first."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20, domain: str | None = None) -> list[AuditEntry]:
        """Read the most recent N entries, optionally for one domain."""
        entries = self.read_all()
        if domain:
            entries = [e for e in entries if e.domain == domain]
        return entries[-n:] if n > 0 else []

    def entry_count(self) -> int:
        if not self._path.is_file():
            return 0
        try:
            with self._path.open("r", encoding="utf-8") as f:
                return sum(1 for line in f if line.strip())
        except OSError:
            return 0


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
