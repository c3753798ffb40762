"""
Vhost config manager — render and place nginx server blocks.

Uses the Debian layout: every known site lives in sites-available as
``<domain>.conf``; a symlink of the same name in sites-enabled marks it
active. Disabling removes only the link; the rendered file stays until
the site is removed.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass

from vhostctl.adapters.shell.privileged import PrivilegedFileWriter
from vhostctl.core.errors import CapabilityDisabledError, ProvisionIOError
from vhostctl.core.models.command import CommandResult
from vhostctl.core.models.settings import Settings
from vhostctl.core.models.transcript import Transcript

logger = logging.getLogger(__name__)

# Values matching this are safe as bare nginx tokens
_BARE_TOKEN_RE = re.compile(r"^[A-Za-z0-9/._+@:=,~-]+$")

NGINX_SITE_TEMPLATE = r"""server {{
  listen 80;
  server_name {domain};

  root {root};
  index index.php index.html;

  access_log off;
  error_log  {error_log};

  location / {{
    try_files $uri $uri/ /index.php?$query_string;
  }}

  location ~ \.php$ {{
    include snippets/fastcgi-php.conf;
    fastcgi_pass {socket};
    fastcgi_param SCRIPT_FILENAME $document_root$fastcgi_script_name;
    include fastcgi_params;
  }}

  location ~ /\.(?!well-known).* {{
    deny all;
  }}
}}
"""


def nginx_quote(value: str) -> str:
    """Quote a value for an nginx directive when it is not a bare token."""
    if _BARE_TOKEN_RE.match(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class VhostState:
    """What is on disk for one domain right now."""

    available_path: str
    enabled_path: str
    available_exists: bool = False
    enabled_exists: bool = False
    enabled_target: str | None = None

    @property
    def linked_to_available(self) -> bool:
        return self.enabled_target is not None and os.path.realpath(
            self.enabled_target
        ) == os.path.realpath(self.available_path)

    def to_dict(self) -> dict[str, object]:
        return {
            "available_path": self.available_path,
            "available_exists": self.available_exists,
            "enabled_path": self.enabled_path,
            "enabled_exists": self.enabled_exists,
            "enabled_target": self.enabled_target,
            "linked_to_available": self.linked_to_available,
        }


class VhostConfigManager:
    """Render, write, enable, and disable nginx site configs."""

    def __init__(self, settings: Settings, writer: PrivilegedFileWriter):
        self._available_dir = settings.nginx_available.rstrip("/") or "/"
        self._enabled_dir = settings.nginx_enabled.rstrip("/") or "/"
        self._log_dir = settings.nginx_log_dir.rstrip("/") or "/"
        self._writer = writer

    @property
    def available_dir(self) -> str:
        return self._available_dir

    @property
    def enabled_dir(self) -> str:
        return self._enabled_dir

    def available_path(self, domain: str) -> str:
        return os.path.join(self._available_dir, f"{domain}.conf")

    def enabled_path(self, domain: str) -> str:
        return os.path.join(self._enabled_dir, f"{domain}.conf")

    def missing_directories(self) -> list[str]:
        """Config directories that do not exist."""
        return [d for d in (self._available_dir, self._enabled_dir) if not os.path.isdir(d)]

    def render(self, domain: str, document_root: str, socket: str) -> str:
        """Render the server block for one site."""
        return NGINX_SITE_TEMPLATE.format(
            domain=domain,
            root=nginx_quote(document_root),
            error_log=nginx_quote(f"{self._log_dir}/{domain}.error.log"),
            socket=socket,
        )

    def write_available(self, domain: str, content: str, transcript: Transcript | None = None) -> str:
        """Write the rendered document into sites-available."""
        transcript = transcript if transcript is not None else Transcript()
        path = self.available_path(domain)
        self._check(self._writer.write(path, content, transcript), f"write {path}")
        transcript.note(f"config written: {path}")
        return path

    def enable(self, domain: str, transcript: Transcript | None = None) -> str:
        """Link sites-enabled/<domain>.conf to the available file."""
        transcript = transcript if transcript is not None else Transcript()
        source = self.available_path(domain)
        link = self.enabled_path(domain)
        self._check(self._writer.symlink(source, link, transcript), f"link {link}")
        transcript.note(f"site enabled: {link} -> {source}")
        return link

    def disable(self, domain: str, transcript: Transcript | None = None) -> str:
        """Remove the sites-enabled link, keeping the available file."""
        transcript = transcript if transcript is not None else Transcript()
        link = self.enabled_path(domain)
        self._check(self._writer.remove(link, transcript), f"remove {link}")
        transcript.note(f"site disabled: {link} removed")
        return link

    def delete_available(self, domain: str, transcript: Transcript | None = None) -> str:
        """Remove the sites-available file."""
        transcript = transcript if transcript is not None else Transcript()
        path = self.available_path(domain)
        self._check(self._writer.remove(path, transcript), f"remove {path}")
        transcript.note(f"config deleted: {path}")
        return path

    def inspect(self, domain: str) -> VhostState:
        available = self.available_path(domain)
        enabled = self.enabled_path(domain)
        target = None
        if os.path.islink(enabled):
            try:
                target = os.path.join(os.path.dirname(enabled), os.readlink(enabled))
            except OSError:
                target = None
        return VhostState(
            available_path=available,
            enabled_path=enabled,
            available_exists=os.path.isfile(available),
            enabled_exists=os.path.lexists(enabled),
            enabled_target=target,
        )

    @staticmethod
    def _check(result: CommandResult, what: str) -> None:
        if result.disabled:
            raise CapabilityDisabledError(f"Cannot {what}: command execution is disabled")
        if not result.ok:
            raise ProvisionIOError(f"Failed to {what} (exit {result.exit_code})")
