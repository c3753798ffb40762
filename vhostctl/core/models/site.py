"""
Site — the unit of provisioning.

A Site is a plain value: it carries the desired state (domain, document
root, PHP version, enabled flag) and nothing else. The live system state
is never stored; the orchestrator derives it by inspecting files on
every run.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

ServerType = Literal["nginx"]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class RuntimeSpec(BaseModel):
    """One entry of the PHP runtime map."""

    service: str                     # init-system service id, e.g. php8.1-fpm
    socket: str                      # fastcgi_pass target, e.g. unix:/run/php/php8.1-fpm.sock


class Site(BaseModel):
    """A virtual host record."""

    domain: str
    server_type: ServerType = "nginx"
    php_version: str
    source_path: str
    enabled: bool = True

    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()
