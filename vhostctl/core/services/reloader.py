"""
Service reloader — syntax-check nginx, then reload nginx and PHP-FPM.

The syntax check is a hard gate: a broken config reloaded into nginx
takes every other site on the host down with it, so a failing check
aborts before any reload is attempted.
"""

from __future__ import annotations

import logging

from vhostctl.adapters.base import Executor
from vhostctl.core.errors import (
    CapabilityDisabledError,
    ConfigTestError,
    ReloadError,
    ValidationError,
)
from vhostctl.core.models.command import Command
from vhostctl.core.models.settings import Settings
from vhostctl.core.models.transcript import Transcript
from vhostctl.core.services.fallback import ChainResult, FallbackChain

logger = logging.getLogger(__name__)


class ServiceReloader:
    """Escalated nginx test/reload and PHP-FPM reload via fallback chains."""

    def __init__(self, settings: Settings, executor: Executor):
        self._settings = settings
        self._commands = settings.commands
        self._executor = executor

    def web_server_chain(self) -> FallbackChain:
        return FallbackChain.from_templates(
            "reload nginx",
            self._commands.web_server_reload,
            prefix=self._commands.escalate,
        )

    def runtime_chain(self, php_version: str) -> FallbackChain:
        runtime = self._settings.runtime(php_version)
        if runtime is None:
            raise ValidationError(f"No PHP-FPM service mapped for PHP {php_version}")
        return FallbackChain.from_templates(
            f"reload {runtime.service}",
            self._commands.runtime_reload,
            prefix=self._commands.escalate,
            service=runtime.service,
        )

    def test_web_server_config(self, transcript: Transcript | None = None) -> None:
        """Run ``nginx -t`` with escalation; raise ConfigTestError on failure."""
        transcript = transcript if transcript is not None else Transcript()
        command = Command(argv=[*self._commands.escalate, *self._commands.web_server_test])
        result = self._executor.run(command)
        transcript.record(result)

        if result.disabled:
            raise CapabilityDisabledError("Cannot test nginx config: command execution is disabled")
        if not result.ok:
            raise ConfigTestError(
                f"nginx configuration test failed (exit {result.exit_code}); nothing was reloaded"
            )
        transcript.note("nginx config test passed")

    def reload_web_server(self, transcript: Transcript | None = None) -> ChainResult:
        transcript = transcript if transcript is not None else Transcript()
        result = self.web_server_chain().run(self._executor, transcript)
        self._raise_for_chain(result)
        transcript.note(f"nginx reloaded via: {result.winner.command.display}")
        return result

    def reload_runtime(self, php_version: str, transcript: Transcript | None = None) -> ChainResult:
        transcript = transcript if transcript is not None else Transcript()
        chain = self.runtime_chain(php_version)
        result = chain.run(self._executor, transcript)
        self._raise_for_chain(result)
        transcript.note(f"PHP {php_version} runtime reloaded via: {result.winner.command.display}")
        return result

    @staticmethod
    def _raise_for_chain(result: ChainResult) -> None:
        if result.ok:
            return
        if result.disabled:
            raise CapabilityDisabledError(f"Cannot {result.name}: command execution is disabled")
        raise ReloadError(
            f"Could not {result.name}: all {len(result.attempts)} alternatives failed"
        )
