"""
Shared test fixtures and configuration.

Provisioning tests run against a throwaway tree under ``tmp_path``: a
private hosts file, sites-available and sites-enabled directories, and
a document root. File operations (tee, rm, ln) really run there;
everything that would touch a service (nginx -t, reloads) is faked.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest
import yaml

from vhostctl.adapters.mock import MockExecutor
from vhostctl.adapters.shell.command import ShellExecutor
from vhostctl.core.models.command import Command, CommandResult
from vhostctl.core.models.settings import CommandSettings, Settings
from vhostctl.core.models.site import Site

HOSTS_SEED = "127.0.0.1\tlocalhost\n::1\tlocalhost ip6-localhost\n"


class LocalExecutor(MockExecutor):
    """Runs file commands for real, fakes everything else.

    Scripted rules (``set_result`` / ``set_failure``) always win, so a
    test can still make a ``tee`` fail.
    """

    LOCAL_PROGRAMS = {"tee", "rm", "ln", "true"}

    def __init__(self) -> None:
        super().__init__(executor_name="local")
        self._shell = ShellExecutor(timeout=10)

    def _execute(self, command: Command) -> CommandResult:
        scripted = any(match in command.display for match, _, _ in self._rules)
        if not scripted and os.path.basename(command.program) in self.LOCAL_PROGRAMS:
            self._calls.append(command)
            return self._shell._execute(command)
        return super()._execute(command)


def _which(program: str, fallback: str) -> str:
    return shutil.which(program) or fallback


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of every test."""
    for var in (
        "VHOSTCTL_CONFIG",
        "VHOSTCTL_EXEC_DISABLED",
        "VHOSTCTL_LOG_LEVEL",
        "VHOSTCTL_LOG_FILE",
        "VHOSTCTL_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def sandbox(tmp_path: Path) -> Path:
    """A fake system tree: etc/hosts, nginx dirs, and a document root."""
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc" / "hosts").write_text(HOSTS_SEED)
    (tmp_path / "nginx" / "sites-available").mkdir(parents=True)
    (tmp_path / "nginx" / "sites-enabled").mkdir(parents=True)
    (tmp_path / "www" / "demo" / "public").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def settings(sandbox: Path) -> Settings:
    """Settings pointed at the sandbox, with no escalation prefix."""
    return Settings(
        nginx_available=str(sandbox / "nginx" / "sites-available"),
        nginx_enabled=str(sandbox / "nginx" / "sites-enabled"),
        nginx_log_dir=str(sandbox / "log"),
        hosts_file=str(sandbox / "etc" / "hosts"),
        runtime_user=None,
        state_dir=str(sandbox / "state"),
        commands=CommandSettings(
            escalate=[],
            noop=[_which("true", "/bin/true")],
            tee=[_which("tee", "/usr/bin/tee")],
            remove=[_which("rm", "/bin/rm"), "-f"],
            symlink=[_which("ln", "/bin/ln"), "-sf"],
        ),
    )


@pytest.fixture
def executor() -> LocalExecutor:
    return LocalExecutor()


@pytest.fixture
def doc_root(sandbox: Path) -> str:
    return str(sandbox / "www" / "demo" / "public")


@pytest.fixture
def site(doc_root: str) -> Site:
    return Site(domain="demo.test", php_version="8.1", source_path=doc_root)


@pytest.fixture
def config_file(sandbox: Path, settings: Settings) -> Path:
    """A vhostctl.yml describing the sandbox settings."""
    path = sandbox / "vhostctl.yml"
    path.write_text(yaml.safe_dump(settings.model_dump(mode="json")))
    return path
