"""
Input validation — turn raw user strings into safe, typed parameters.

Every validator either returns the normalized value or raises
``ValidationError`` with a message the user can act on. No validator
mutates anything, and domain validation never touches the network.

Source-path validation is a live filesystem check: it runs again on
every provisioning attempt, because permissions can change between the
moment a site is recorded and the moment it is deployed.
"""

from __future__ import annotations

import grp
import logging
import os
import pwd
import re
import stat
from collections.abc import Mapping

from vhostctl.core.errors import ValidationError
from vhostctl.core.models.settings import Settings
from vhostctl.core.models.site import Site

logger = logging.getLogger(__name__)

MAX_DOMAIN_LENGTH = 253

# One or more labels (alnum, internal hyphens, 1-63 chars) then an alphabetic TLD
_DOMAIN_RE = re.compile(r"^([a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}$")

SUPPORTED_SERVER_TYPES = ("nginx",)

_DOMAIN_HINT = "Invalid domain. Example: myapp.test"
_UNRESOLVABLE_HINT = "A parent directory is probably not traversable; check its permissions."


def validate_domain(value: str) -> str:
    """Normalize and check a hostname.

    Returns:
        The lowercased, trimmed domain.
    """
    domain = (value or "").strip().lower()
    if not domain:
        raise ValidationError(_DOMAIN_HINT)
    if len(domain) > MAX_DOMAIN_LENGTH:
        raise ValidationError(f"Domain is too long (max {MAX_DOMAIN_LENGTH} characters).")
    if not _DOMAIN_RE.match(domain):
        raise ValidationError(_DOMAIN_HINT)
    return domain


def validate_php_version(value: str, php_map: Mapping[str, object]) -> str:
    """Check that a PHP version is a key of the runtime map."""
    version = str(value if value is not None else "").strip()
    if version not in php_map:
        allowed = " / ".join(sorted(php_map)) or "(none configured)"
        raise ValidationError(f"PHP version must be one of: {allowed}")
    return version


def validate_server_type(value: str) -> str:
    server_type = (value or "").strip().lower()
    if server_type not in SUPPORTED_SERVER_TYPES:
        raise ValidationError(
            f"Unsupported server type '{value}'. Supported: {', '.join(SUPPORTED_SERVER_TYPES)}"
        )
    return server_type


def validate_source_path(value: str, runtime_user: str | None = None) -> str:
    """Check a document root and return its canonical form.

    String checks (absolute, no NUL or control characters, no ``..``)
    run before any filesystem call.

    Args:
        value: Raw path as entered by the user.
        runtime_user: Account the PHP runtime runs as. When it is the
            current user (or None) ``os.access`` is used; otherwise the
            permission bits are evaluated for that account.

    Returns:
        The canonical real path without a trailing slash.
    """
    path = (value or "").strip()
    if not path or not path.startswith("/"):
        raise ValidationError("Source path must be an absolute path (starting with /).")
    if "\0" in path or any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in path):
        raise ValidationError("Source path contains invalid characters.")
    if ".." in path:
        raise ValidationError("Source path is invalid (contains '..').")

    if not os.path.exists(path):
        raise ValidationError(f"Source directory does not exist: {path}")
    if not os.path.isdir(path):
        raise ValidationError(f"Source path exists but is not a directory: {path}")

    try:
        real = os.path.realpath(path, strict=True)
    except (OSError, RuntimeError) as e:
        logger.debug("realpath(%s) failed: %s", path, e)
        raise ValidationError(
            f"Source directory may exist but cannot be resolved ({e.__class__.__name__}). "
            + _UNRESOLVABLE_HINT
        ) from e

    # realpath ran as the current user; the runtime user needs every parent too
    if runtime_user is not None and not _is_current_user(runtime_user):
        blocked = _untraversable_parent(real, runtime_user)
        if blocked is not None:
            raise ValidationError(
                f"Source directory may exist but cannot be resolved by {runtime_user} "
                f"({blocked} is not traversable). " + _UNRESOLVABLE_HINT
            )

    who = runtime_user or "the current user"
    if not _has_access(real, os.R_OK, runtime_user):
        raise ValidationError(f"Source directory is not readable by {who}: {real}")
    if not _has_access(real, os.X_OK, runtime_user):
        raise ValidationError(f"Source directory is not traversable (executable) by {who}: {real}")

    return real.rstrip("/") or "/"


def validate_site(
    settings: Settings,
    *,
    domain: str,
    php_version: str | None = None,
    source_path: str,
    enabled: bool = True,
    server_type: str | None = None,
) -> Site:
    """Run every validator and build a Site value."""
    return Site(
        domain=validate_domain(domain),
        server_type=validate_server_type(server_type or settings.default_server_type),
        php_version=validate_php_version(
            php_version if php_version is not None else settings.default_php_version,
            settings.php_map,
        ),
        source_path=validate_source_path(source_path, settings.runtime_user),
        enabled=enabled,
    )


# ── Permission checks ───────────────────────────────────────────


def _has_access(path: str, mode: int, user: str | None) -> bool:
    if user is None or _is_current_user(user):
        return os.access(path, mode)

    try:
        account = pwd.getpwnam(user)
    except KeyError:
        logger.warning("Runtime user '%s' does not exist; checking as current user", user)
        return os.access(path, mode)

    if account.pw_uid == 0:
        return True

    try:
        st = os.stat(path)
    except OSError:
        return False

    owner_bit, group_bit, other_bit = {
        os.R_OK: (stat.S_IRUSR, stat.S_IRGRP, stat.S_IROTH),
        os.X_OK: (stat.S_IXUSR, stat.S_IXGRP, stat.S_IXOTH),
    }[mode]

    if st.st_uid == account.pw_uid:
        return bool(st.st_mode & owner_bit)
    if st.st_gid in _group_ids(account):
        return bool(st.st_mode & group_bit)
    return bool(st.st_mode & other_bit)


def _untraversable_parent(path: str, user: str) -> str | None:
    """The outermost ancestor of ``path`` that ``user`` cannot traverse."""
    ancestors = []
    current = os.path.dirname(path)
    while True:
        ancestors.append(current)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    for directory in reversed(ancestors):
        if not _has_access(directory, os.X_OK, user):
            return directory
    return None


def _is_current_user(user: str) -> bool:
    try:
        return pwd.getpwuid(os.geteuid()).pw_name == user
    except KeyError:
        return False


def _group_ids(account: pwd.struct_passwd) -> set[int]:
    gids = {account.pw_gid}
    for group in grp.getgrall():
        if account.pw_name in group.gr_mem:
            gids.add(group.gr_gid)
    return gids
