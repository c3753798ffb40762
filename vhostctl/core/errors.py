"""
Error kinds raised by the provisioning components.

The command executor never raises — failures live in its
``CommandResult``. Everything above it (validators, hosts editor,
vhost manager, reloader) raises one of these, and the orchestrator
catches them per step, records them in the transcript, and stops.

Every error carries a short ``kind`` string so audit entries and
reports can name the failure without importing the class.
"""

from __future__ import annotations


class VhostctlError(Exception):
    """Base class for every error this package raises on purpose."""

    kind = "error"


class ConfigError(VhostctlError):
    """Raised when the settings file is missing, unreadable, or invalid."""

    kind = "config"


class ValidationError(VhostctlError):
    """Raised when user input cannot be turned into safe parameters.

    Always raised before any system mutation. The message is meant to be
    shown to the user as-is.
    """

    kind = "validation"


class CapabilityDisabledError(VhostctlError):
    """Raised when command execution is administratively disabled."""

    kind = "capability_disabled"


class PrivilegeError(VhostctlError):
    """Raised when non-interactive privilege escalation is unavailable."""

    kind = "privilege"


class ProvisionIOError(VhostctlError):
    """Raised when reading, writing, or removing a system file fails."""

    kind = "io"


class ConfigTestError(VhostctlError):
    """Raised when the web server's syntax check rejects the configuration."""

    kind = "config_test"


class ReloadError(VhostctlError):
    """Raised when every command of a reload fallback chain failed."""

    kind = "reload"


class SiteNotFoundError(VhostctlError):
    """Raised when a site record does not exist in the store."""

    kind = "not_found"


class SiteExistsError(VhostctlError):
    """Raised when adding a site whose domain is already stored."""

    kind = "exists"
