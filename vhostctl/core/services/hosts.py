"""
Hosts file editor — one tagged line per domain in a shared file.

/etc/hosts is shared with manual edits and other tools. Lines this
package writes end with ``# <tag>``; removal only ever touches lines
carrying that tag, so entries somebody else added survive, byte for
byte, even when they are not valid UTF-8.

The file is world-readable, so it is read directly; writes go through
the privileged writer.
"""

from __future__ import annotations

import logging
from pathlib import Path

from vhostctl.adapters.shell.privileged import PrivilegedFileWriter
from vhostctl.core.errors import CapabilityDisabledError, ProvisionIOError
from vhostctl.core.models.settings import Settings
from vhostctl.core.models.transcript import Transcript

logger = logging.getLogger(__name__)


def has_token(line: str, domain: str) -> bool:
    """Whether ``domain`` appears in ``line`` as a whitespace-delimited token."""
    return domain in line.split()


def content_has_domain(content: str, domain: str) -> bool:
    return any(has_token(line, domain) for line in content.splitlines())


class HostsFileEditor:
    """Add and remove managed entries in the hosts file."""

    def __init__(self, settings: Settings, writer: PrivilegedFileWriter):
        self._path = settings.hosts_file
        self._tag = settings.hosts_tag
        self._ip = settings.hosts_ip
        self._writer = writer

    @property
    def path(self) -> str:
        return self._path

    @property
    def marker(self) -> str:
        return f"# {self._tag}"

    def entry_line(self, domain: str) -> str:
        return f"{self._ip}\t{domain}\t{self.marker}"

    def is_managed(self, line: str) -> bool:
        return self.marker in line

    # ── Pure transforms ─────────────────────────────────────────

    def with_entry(self, content: str, domain: str) -> str | None:
        """Content with a managed entry appended, or None if already present."""
        if content_has_domain(content, domain):
            return None
        base = content.rstrip("\n")
        prefix = f"{base}\n" if base else ""
        return f"{prefix}{self.entry_line(domain)}\n"

    def without_entry(self, content: str, domain: str) -> tuple[str, int]:
        """Content with managed entries for ``domain`` dropped.

        Returns:
            (new_content, removed_count). The new content ends in exactly
            one newline.
        """
        kept = []
        removed = 0
        for line in content.splitlines():
            if self.is_managed(line) and has_token(line, domain):
                removed += 1
                continue
            kept.append(line)
        return "\n".join(kept).rstrip("\n") + "\n", removed

    # ── File operations ─────────────────────────────────────────

    def read(self) -> str:
        """Current file content; bytes that are not UTF-8 survive as surrogates."""
        try:
            return Path(self._path).read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            raise ProvisionIOError(f"Cannot read {self._path}: {e}") from e

    def contains(self, domain: str) -> bool:
        """Whether any line of the hosts file resolves ``domain``."""
        return content_has_domain(self.read(), domain)

    def has_managed_entry(self, domain: str) -> bool:
        """Whether a tagged line for ``domain`` is present."""
        return any(
            self.is_managed(line) and has_token(line, domain)
            for line in self.read().splitlines()
        )

    def add(self, domain: str, transcript: Transcript | None = None) -> bool:
        """Ensure ``domain`` resolves locally.

        A domain already present on any line (tagged or not) counts as
        satisfied and nothing is written.

        Returns:
            True if the file was rewritten.
        """
        transcript = transcript if transcript is not None else Transcript()
        updated = self.with_entry(self.read(), domain)
        if updated is None:
            transcript.note(f"{self._path} already contains {domain}")
            logger.info("%s already resolves %s", self._path, domain)
            return False

        self._write(updated, transcript)
        transcript.note(f"hosts: added {domain}")
        return True

    def remove(self, domain: str, transcript: Transcript | None = None) -> bool:
        """Drop managed entries for ``domain``.

        Returns:
            True if the file was rewritten.
        """
        transcript = transcript if transcript is not None else Transcript()
        updated, removed = self.without_entry(self.read(), domain)
        if not removed:
            transcript.note(f"hosts: no managed entry for {domain}")
            logger.info("No managed %s entry for %s", self._path, domain)
            return False

        self._write(updated, transcript)
        transcript.note(f"hosts: removed {domain} ({removed} line{'s' if removed != 1 else ''})")
        return True

    def _write(self, content: str, transcript: Transcript) -> None:
        result = self._writer.write(self._path, content, transcript)
        if result.disabled:
            raise CapabilityDisabledError(f"Cannot write {self._path}: command execution is disabled")
        if not result.ok:
            raise ProvisionIOError(f"Failed to write {self._path} (exit {result.exit_code})")
