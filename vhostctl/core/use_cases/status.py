"""
Status use case — a site record next to what is actually on disk.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vhostctl.adapters.shell.privileged import PrivilegedFileWriter
from vhostctl.core.errors import VhostctlError
from vhostctl.core.models.site import Site
from vhostctl.core.services.hosts import HostsFileEditor
from vhostctl.core.services.validation import validate_domain
from vhostctl.core.services.vhost import VhostConfigManager, VhostState
from vhostctl.core.use_cases.provision import build_executor, open_workspace


@dataclass
class SiteStatus:
    """Recorded desired state plus inspected live state."""

    site: Site | None = None
    hosts_entry: bool | None = None
    managed_hosts_entry: bool | None = None
    vhost: VhostState | None = None
    error: str | None = None

    @property
    def in_sync(self) -> bool:
        """Whether the live state matches the recorded desired state."""
        if self.site is None or self.vhost is None or self.hosts_entry is None:
            return False
        if self.site.enabled:
            return (
                self.hosts_entry
                and self.vhost.available_exists
                and self.vhost.linked_to_available
            )
        return not self.vhost.enabled_exists and not self.managed_hosts_entry

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "site": self.site.model_dump(mode="json") if self.site else None,
            "hosts_entry": self.hosts_entry,
            "managed_hosts_entry": self.managed_hosts_entry,
            "vhost": self.vhost.to_dict() if self.vhost else None,
            "in_sync": self.in_sync,
        }


def get_site_status(domain: str, config_path: Path | None = None) -> SiteStatus:
    """Inspect one site without running any command.

    The hosts file and config directories are world-readable, so no
    escalation is needed; the writer is never called.
    """
    result = SiteStatus()
    try:
        ws = open_workspace(config_path)
        result.site = ws.store.get(validate_domain(domain))
    except VhostctlError as e:
        result.error = str(e)
        return result

    writer = PrivilegedFileWriter(build_executor(ws.settings), ws.settings.commands)
    hosts = HostsFileEditor(ws.settings, writer)
    vhosts = VhostConfigManager(ws.settings, writer)

    try:
        result.hosts_entry = hosts.contains(result.site.domain)
        result.managed_hosts_entry = hosts.has_managed_entry(result.site.domain)
    except VhostctlError as e:
        result.error = str(e)
        return result
    result.vhost = vhosts.inspect(result.site.domain)
    return result
