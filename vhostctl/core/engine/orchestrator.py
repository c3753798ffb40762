"""
Provision orchestrator — the ordered apply/remove pipelines.

The orchestrator reconciles the live system with a Site's desired
state. It is a linear state machine: each step runs only if every
previous step succeeded, and the first failure ends the run.

Apply:
    preflight → hosts_reconcile → write_config → enable_or_disable
    → test_config → reload_web_server → reload_runtime

Remove:
    preflight → hosts_remove → delete_enabled_link → delete_available_file
    → test_config → reload_web_server

There is no rollback: changes made by steps before a failure stay
applied, and the transcript says exactly which ones ran. At most one
run at a time is assumed; callers serialize access.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from vhostctl.adapters.base import Executor
from vhostctl.adapters.shell.privileged import PrivilegedFileWriter
from vhostctl.core.errors import (
    CapabilityDisabledError,
    ConfigError,
    PrivilegeError,
    ValidationError,
    VhostctlError,
)
from vhostctl.core.models.report import ProvisionReport, StepRecord
from vhostctl.core.models.settings import Settings
from vhostctl.core.models.site import Site
from vhostctl.core.models.transcript import Transcript
from vhostctl.core.services.hosts import HostsFileEditor
from vhostctl.core.services.reloader import ServiceReloader
from vhostctl.core.services.validation import validate_source_path
from vhostctl.core.services.vhost import VhostConfigManager

logger = logging.getLogger(__name__)

StepFn = Callable[[Site, Transcript], None]


class ProvisionOrchestrator:
    """Sequence hosts, vhost, and reload operations for one Site.

    Components default to ones built from ``settings`` and ``executor``;
    any of them can be passed in instead.
    """

    def __init__(
        self,
        settings: Settings,
        executor: Executor,
        *,
        writer: PrivilegedFileWriter | None = None,
        hosts: HostsFileEditor | None = None,
        vhosts: VhostConfigManager | None = None,
        reloader: ServiceReloader | None = None,
    ):
        self._settings = settings
        self._writer = writer or PrivilegedFileWriter(executor, settings.commands)
        self._hosts = hosts or HostsFileEditor(settings, self._writer)
        self._vhosts = vhosts or VhostConfigManager(settings, self._writer)
        self._reloader = reloader or ServiceReloader(settings, executor)

    @property
    def hosts(self) -> HostsFileEditor:
        return self._hosts

    @property
    def vhosts(self) -> VhostConfigManager:
        return self._vhosts

    # ── Public API ──────────────────────────────────────────────

    def provision(self, site: Site) -> tuple[bool, str]:
        """Apply the site's desired state. Returns ``(ok, log)``."""
        return self.apply(site).as_tuple()

    def deprovision(self, site: Site) -> tuple[bool, str]:
        """Remove every trace of the site. Returns ``(ok, log)``."""
        return self.remove(site).as_tuple()

    def apply(self, site: Site) -> ProvisionReport:
        steps: list[tuple[str, str, StepFn]] = [
            ("preflight", "Preflight", self._preflight_apply),
            ("hosts_reconcile", f"Hosts file: {self._hosts.path}", self._hosts_reconcile),
            ("write_config", "Write vhost config", self._write_config),
            (
                "enable_or_disable",
                "Enable site" if site.enabled else "Disable site",
                self._enable_or_disable,
            ),
            ("test_config", "Test nginx config", self._test_config),
            ("reload_web_server", "Reload nginx", self._reload_web_server),
            ("reload_runtime", f"Reload PHP {site.php_version} runtime", self._reload_runtime),
        ]
        return self._run("provision", site, steps)

    def remove(self, site: Site) -> ProvisionReport:
        steps: list[tuple[str, str, StepFn]] = [
            ("preflight", "Preflight", self._preflight_remove),
            ("hosts_remove", f"Hosts file: {self._hosts.path}", self._hosts_remove),
            ("delete_enabled_link", "Remove enabled link", self._delete_enabled_link),
            ("delete_available_file", "Remove vhost config", self._delete_available_file),
            ("test_config", "Test nginx config", self._test_config),
            ("reload_web_server", "Reload nginx", self._reload_web_server),
        ]
        return self._run("deprovision", site, steps)

    # ── Pipeline runner ─────────────────────────────────────────

    def _run(
        self,
        operation: str,
        site: Site,
        steps: list[tuple[str, str, StepFn]],
    ) -> ProvisionReport:
        transcript = Transcript()
        report = ProvisionReport(operation=operation, domain=site.domain)
        started = time.monotonic()
        logger.info("%s %s: %d steps", operation, site.domain, len(steps))

        for name, title, step in steps:
            transcript.section(title)
            step_started = time.monotonic()
            try:
                step(site, transcript)
            except VhostctlError as e:
                self._fail_step(report, transcript, name, step_started, e.kind, str(e))
                logger.warning("%s %s: step '%s' failed: %s", operation, site.domain, name, e)
                break
            except Exception as e:
                message = f"Unexpected {e.__class__.__name__}: {e}"
                self._fail_step(report, transcript, name, step_started, "internal", message)
                logger.exception("%s %s: step '%s' crashed", operation, site.domain, name)
                break
            report.steps.append(StepRecord(name=name, duration_ms=_elapsed_ms(step_started)))

        report.log = transcript.text
        report.duration_ms = _elapsed_ms(started)

        status_marker = "✓" if report.ok else "✗"
        logger.info("%s %s:%s → %s", status_marker, operation, site.domain, report.status)
        return report

    @staticmethod
    def _fail_step(
        report: ProvisionReport,
        transcript: Transcript,
        name: str,
        step_started: float,
        kind: str,
        message: str,
    ) -> None:
        transcript.error(message)
        report.steps.append(
            StepRecord(name=name, status="failed", error=message,
                       duration_ms=_elapsed_ms(step_started))
        )
        report.error_kind = kind
        report.error = message

    # ── Steps ───────────────────────────────────────────────────

    def _require_escalation(self, transcript: Transcript) -> None:
        result = self._writer.can_escalate(transcript)
        if result.disabled:
            raise CapabilityDisabledError("Command execution is disabled; cannot provision")
        if not result.ok:
            raise PrivilegeError(
                "Non-interactive privilege escalation is not configured "
                "(passwordless sudo for this user is required)"
            )

    def _require_directories(self, transcript: Transcript) -> None:
        missing = self._vhosts.missing_directories()
        if missing:
            raise ConfigError(
                f"nginx config directory not found: {', '.join(missing)}. "
                "Check nginx_available / nginx_enabled in the settings."
            )
        transcript.note(f"config directories: {self._vhosts.available_dir}, {self._vhosts.enabled_dir}")

    def _preflight_apply(self, site: Site, transcript: Transcript) -> None:
        self._require_escalation(transcript)
        self._require_directories(transcript)
        if self._settings.runtime(site.php_version) is None:
            raise ValidationError(f"No runtime mapping for PHP {site.php_version}")
        validate_source_path(site.source_path, self._settings.runtime_user)
        transcript.note("preflight ok")

    def _preflight_remove(self, site: Site, transcript: Transcript) -> None:
        self._require_escalation(transcript)
        self._require_directories(transcript)
        transcript.note("preflight ok")

    def _hosts_reconcile(self, site: Site, transcript: Transcript) -> None:
        if site.enabled:
            self._hosts.add(site.domain, transcript)
        else:
            self._hosts.remove(site.domain, transcript)

    def _write_config(self, site: Site, transcript: Transcript) -> None:
        runtime = self._settings.runtime(site.php_version)
        if runtime is None:
            raise ValidationError(f"No runtime mapping for PHP {site.php_version}")
        content = self._vhosts.render(site.domain, site.source_path, runtime.socket)
        self._vhosts.write_available(site.domain, content, transcript)

    def _enable_or_disable(self, site: Site, transcript: Transcript) -> None:
        # disabling keeps the available file; only removal deletes it
        if site.enabled:
            self._vhosts.enable(site.domain, transcript)
        else:
            self._vhosts.disable(site.domain, transcript)

    def _test_config(self, site: Site, transcript: Transcript) -> None:
        self._reloader.test_web_server_config(transcript)

    def _reload_web_server(self, site: Site, transcript: Transcript) -> None:
        self._reloader.reload_web_server(transcript)

    def _reload_runtime(self, site: Site, transcript: Transcript) -> None:
        self._reloader.reload_runtime(site.php_version, transcript)

    def _hosts_remove(self, site: Site, transcript: Transcript) -> None:
        self._hosts.remove(site.domain, transcript)

    def _delete_enabled_link(self, site: Site, transcript: Transcript) -> None:
        self._vhosts.disable(site.domain, transcript)

    def _delete_available_file(self, site: Site, transcript: Transcript) -> None:
        self._vhosts.delete_available(site.domain, transcript)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
