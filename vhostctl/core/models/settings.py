"""
Settings — the process-wide configuration value.

Built once at startup by the config loader and passed explicitly into
every component constructor. Nothing looks settings up ambiently.

Defaults mirror a stock Ubuntu 22.04 nginx + PHP-FPM install, so an
empty ``vhostctl.yml`` is a valid configuration on such a host.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from vhostctl.core.models.site import RuntimeSpec


def _default_runtimes() -> dict[str, RuntimeSpec]:
    return {
        version: RuntimeSpec(
            service=f"php{version}-fpm",
            socket=f"unix:/run/php/php{version}-fpm.sock",
        )
        for version in ("7.4", "8.1", "8.2")
    }


class CommandSettings(BaseModel):
    """Command templates. Every entry is an argv list, never a shell string.

    Fallback chains are ordered lists of argv lists; ``{service}`` is
    substituted per argument with the runtime's service id.
    """

    escalate: list[str] = Field(default_factory=lambda: ["sudo", "-n"])
    noop: list[str] = Field(default_factory=lambda: ["true"])
    tee: list[str] = Field(default_factory=lambda: ["/usr/bin/tee"])
    remove: list[str] = Field(default_factory=lambda: ["/bin/rm", "-f"])
    symlink: list[str] = Field(default_factory=lambda: ["/bin/ln", "-sf"])

    web_server_test: list[str] = Field(
        default_factory=lambda: ["/usr/sbin/nginx", "-t"],
    )
    web_server_reload: list[list[str]] = Field(
        default_factory=lambda: [
            ["/bin/systemctl", "reload", "nginx"],
            ["/usr/sbin/nginx", "-s", "reload"],
            ["/usr/sbin/service", "nginx", "reload"],
        ],
    )
    runtime_reload: list[list[str]] = Field(
        default_factory=lambda: [
            ["/bin/systemctl", "reload", "{service}"],
            ["/usr/sbin/service", "{service}", "reload"],
            # some legacy service wrappers have no reload verb
            ["/usr/sbin/service", "{service}", "restart"],
        ],
    )

    @field_validator("web_server_reload", "runtime_reload")
    @classmethod
    def _non_empty_chain(cls, chain: list[list[str]]) -> list[list[str]]:
        if not chain or any(not argv for argv in chain):
            raise ValueError("a fallback chain needs at least one non-empty command")
        return chain


class Settings(BaseModel):
    """Root configuration model — loaded from vhostctl.yml."""

    default_server_type: str = "nginx"
    default_php_version: str = "8.1"

    nginx_available: str = "/etc/nginx/sites-available"
    nginx_enabled: str = "/etc/nginx/sites-enabled"
    nginx_log_dir: str = "/var/log/nginx"

    hosts_file: str = "/etc/hosts"
    hosts_tag: str = "vhost-manager"
    hosts_ip: str = "127.0.0.1"

    php_map: dict[str, RuntimeSpec] = Field(default_factory=_default_runtimes)
    runtime_user: str | None = "www-data"   # identity that must reach the document root

    exec_disabled: bool = False
    command_timeout: float = 120.0

    state_dir: str = ".state"
    commands: CommandSettings = Field(default_factory=CommandSettings)

    @field_validator("hosts_tag")
    @classmethod
    def _single_line_tag(cls, tag: str) -> str:
        tag = tag.strip()
        if not tag or "\n" in tag or "\r" in tag:
            raise ValueError("hosts_tag must be a non-empty single line")
        return tag

    @field_validator("command_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("command_timeout must be positive")
        return value

    def runtime(self, php_version: str) -> RuntimeSpec | None:
        """Look up a runtime map entry (None if unmapped)."""
        return self.php_map.get(php_version)
