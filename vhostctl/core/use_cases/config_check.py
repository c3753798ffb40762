"""
Config check use case — validate vhostctl.yml and probe the host.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from vhostctl.core.config.loader import find_settings_file, load_settings, state_dir
from vhostctl.core.errors import ConfigError
from vhostctl.core.models.settings import Settings


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    settings: Settings | None = None
    config_path: Path | None = None
    state_dir: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "state_dir": str(self.state_dir) if self.state_dir else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "php_versions": sorted(self.settings.php_map) if self.settings else [],
            "exec_disabled": self.settings.exec_disabled if self.settings else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate settings and report host problems that would break a run.

    Schema problems are errors. Missing directories or programs are
    warnings: the file may be meant for another machine.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_settings_file()
    result.config_path = config_path
    if config_path is None:
        result.warnings.append("No vhostctl.yml found; using built-in defaults.")

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.settings = settings
    result.state_dir = state_dir(settings, config_path)

    # Semantic checks
    if not settings.php_map:
        result.errors.append("php_map is empty; no PHP version can be provisioned.")
    elif settings.default_php_version not in settings.php_map:
        result.errors.append(
            f"default_php_version {settings.default_php_version} is not a key of php_map "
            f"({', '.join(sorted(settings.php_map))})"
        )

    for label, directory in (
        ("nginx_available", settings.nginx_available),
        ("nginx_enabled", settings.nginx_enabled),
    ):
        if not os.path.isdir(directory):
            result.warnings.append(f"{label} directory does not exist: {directory}")

    if not os.path.isfile(settings.hosts_file):
        result.warnings.append(f"hosts_file does not exist: {settings.hosts_file}")
    elif not os.access(settings.hosts_file, os.R_OK):
        result.warnings.append(f"hosts_file is not readable: {settings.hosts_file}")

    if settings.commands.escalate:
        program = settings.commands.escalate[0]
        if shutil.which(program) is None:
            result.warnings.append(f"Escalation program not found on PATH: {program}")

    if settings.exec_disabled:
        result.warnings.append("exec_disabled is set; every provisioning run will fail.")

    # Result
    result.valid = len(result.errors) == 0
    return result
