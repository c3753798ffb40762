"""
Provision use cases — record a site and reconcile the system with it.

Each function loads settings, validates input, updates the site store,
runs the orchestrator and writes an audit entry. Errors come back on
the result object; nothing here prints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vhostctl.adapters.base import Executor
from vhostctl.adapters.shell.command import ShellExecutor
from vhostctl.core.config.loader import find_settings_file, load_settings, state_dir
from vhostctl.core.engine.orchestrator import ProvisionOrchestrator
from vhostctl.core.errors import VhostctlError
from vhostctl.core.models.report import ProvisionReport
from vhostctl.core.models.settings import Settings
from vhostctl.core.models.site import Site
from vhostctl.core.persistence.audit import AuditEntry, AuditWriter
from vhostctl.core.persistence.site_store import SiteStore
from vhostctl.core.services.validation import (
    validate_domain,
    validate_php_version,
    validate_site,
    validate_source_path,
)

logger = logging.getLogger(__name__)


@dataclass
class SiteResult:
    """Outcome of a site use case."""

    site: Site | None = None
    report: ProvisionReport | None = None
    error: str | None = None
    error_kind: str | None = None
    record_deleted: bool = False

    @property
    def ok(self) -> bool:
        if self.error is not None:
            return False
        return self.report is None or self.report.ok

    @property
    def log(self) -> str:
        return self.report.log if self.report else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "site": self.site.model_dump(mode="json") if self.site else None,
            "report": self.report.to_dict() if self.report else None,
            "error": self.error,
            "error_kind": self.error_kind,
            "record_deleted": self.record_deleted,
        }


@dataclass
class Workspace:
    """Settings plus the persistence objects derived from them."""

    settings: Settings
    store: SiteStore
    audit: AuditWriter
    config_path: Path | None = None


def open_workspace(config_path: Path | None = None) -> Workspace:
    """Load settings and open the store and ledger they point at.

    Raises:
        ConfigError: If the settings file is invalid.
    """
    path = config_path or find_settings_file()
    settings = load_settings(path)
    directory = state_dir(settings, path)
    return Workspace(
        settings=settings,
        store=SiteStore(state_dir=directory),
        audit=AuditWriter(state_dir=directory),
        config_path=path,
    )


def build_executor(settings: Settings) -> Executor:
    return ShellExecutor(timeout=settings.command_timeout, exec_disabled=settings.exec_disabled)


def build_orchestrator(settings: Settings, executor: Executor | None = None) -> ProvisionOrchestrator:
    return ProvisionOrchestrator(settings, executor or build_executor(settings))


def _run_apply(ws: Workspace, site: Site, executor: Executor | None) -> ProvisionReport:
    report = build_orchestrator(ws.settings, executor).apply(site)
    ws.audit.write(
        AuditEntry.from_report(report, enabled=site.enabled, php_version=site.php_version)
    )
    return report


def _fail(result: SiteResult, e: VhostctlError) -> SiteResult:
    result.error = str(e)
    result.error_kind = e.kind
    logger.info("Use case failed (%s): %s", e.kind, e)
    return result


# ── Use cases ───────────────────────────────────────────────────


def provision_site(
    domain: str,
    source_path: str,
    php_version: str | None = None,
    *,
    enabled: bool = True,
    apply: bool = True,
    config_path: Path | None = None,
    executor: Executor | None = None,
) -> SiteResult:
    """Validate and record a new site, then provision it.

    The record is kept even when provisioning fails, so the run can be
    retried with ``apply_site`` once the cause is fixed.
    """
    result = SiteResult()
    try:
        ws = open_workspace(config_path)
        site = validate_site(
            ws.settings,
            domain=domain,
            php_version=php_version,
            source_path=source_path,
            enabled=enabled,
        )
        result.site = ws.store.add(site)
    except VhostctlError as e:
        return _fail(result, e)

    if apply:
        result.report = _run_apply(ws, site, executor)
    return result


def update_site(
    domain: str,
    *,
    source_path: str | None = None,
    php_version: str | None = None,
    enabled: bool | None = None,
    apply: bool = True,
    config_path: Path | None = None,
    executor: Executor | None = None,
) -> SiteResult:
    """Change a recorded site's desired state and re-apply it."""
    result = SiteResult()
    try:
        ws = open_workspace(config_path)
        site = ws.store.get(validate_domain(domain))

        changes: dict[str, Any] = {}
        if source_path is not None:
            changes["source_path"] = validate_source_path(source_path, ws.settings.runtime_user)
        if php_version is not None:
            changes["php_version"] = validate_php_version(php_version, ws.settings.php_map)
        if enabled is not None:
            changes["enabled"] = enabled

        site = site.model_copy(update=changes)
        result.site = ws.store.save(site)
    except VhostctlError as e:
        return _fail(result, e)

    if apply:
        result.report = _run_apply(ws, site, executor)
    return result


def apply_site(
    domain: str,
    *,
    config_path: Path | None = None,
    executor: Executor | None = None,
) -> SiteResult:
    """Re-run the apply pipeline for a recorded site."""
    result = SiteResult()
    try:
        ws = open_workspace(config_path)
        result.site = ws.store.get(validate_domain(domain))
    except VhostctlError as e:
        return _fail(result, e)

    result.report = _run_apply(ws, result.site, executor)
    return result


def deprovision_site(
    domain: str,
    *,
    keep_record: bool = False,
    config_path: Path | None = None,
    executor: Executor | None = None,
) -> SiteResult:
    """Remove a site from the system, then drop its record.

    The record is only deleted after a successful run; a failed removal
    leaves it in place for a retry.
    """
    result = SiteResult()
    try:
        ws = open_workspace(config_path)
        site = ws.store.get(validate_domain(domain))
    except VhostctlError as e:
        return _fail(result, e)

    result.site = site
    report = build_orchestrator(ws.settings, executor).remove(site)
    ws.audit.write(
        AuditEntry.from_report(report, enabled=site.enabled, php_version=site.php_version)
    )
    result.report = report

    if report.ok and not keep_record:
        try:
            ws.store.delete(site.domain)
            result.record_deleted = True
        except VhostctlError as e:
            return _fail(result, e)
    return result


def list_sites(config_path: Path | None = None) -> list[Site]:
    """All recorded sites, sorted by domain.

    Raises:
        VhostctlError: If settings or the store cannot be read.
    """
    return open_workspace(config_path).store.list()


def read_history(
    n: int = 20,
    domain: str | None = None,
    config_path: Path | None = None,
) -> list[AuditEntry]:
    """Most recent audit entries, oldest first."""
    return open_workspace(config_path).audit.read_recent(n, domain=domain)
