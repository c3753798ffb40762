"""
Fallback chains — try equivalent commands in order until one works.

Hosts differ in how their services are managed (systemd, a bare nginx
binary, SysV ``service`` wrappers). A chain lists the alternatives in a
fixed order; the first success ends it. Every attempt is recorded in the
transcript, but the chain reports one aggregate result.

Chains are data: adding or removing a strategy means editing the
command templates in settings, not this module.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from vhostctl.adapters.base import Executor
from vhostctl.core.models.command import Command, CommandResult
from vhostctl.core.models.transcript import Transcript

logger = logging.getLogger(__name__)


def render_argv(template: Sequence[str], **values: str) -> list[str]:
    """Substitute ``{name}`` placeholders in each argument separately."""
    argv = []
    for arg in template:
        for key, value in values.items():
            arg = arg.replace("{" + key + "}", value)
        argv.append(arg)
    return argv


@dataclass
class ChainResult:
    """Aggregate outcome of a fallback chain."""

    name: str
    attempts: list[CommandResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].ok

    @property
    def winner(self) -> CommandResult | None:
        """The attempt that succeeded, if any."""
        return self.attempts[-1] if self.ok else None

    @property
    def last(self) -> CommandResult | None:
        return self.attempts[-1] if self.attempts else None

    @property
    def disabled(self) -> bool:
        """Whether every attempt was blocked by disabled execution."""
        return bool(self.attempts) and all(a.disabled for a in self.attempts)


@dataclass
class FallbackChain:
    """An ordered list of alternative commands achieving one effect."""

    name: str
    commands: list[Command] = field(default_factory=list)

    @classmethod
    def from_templates(
        cls,
        name: str,
        templates: Sequence[Sequence[str]],
        prefix: Sequence[str] = (),
        **values: str,
    ) -> FallbackChain:
        """Build a chain from argv templates, optionally escalated with ``prefix``."""
        commands = [
            Command(argv=[*prefix, *render_argv(template, **values)])
            for template in templates
        ]
        return cls(name=name, commands=commands)

    def run(self, executor: Executor, transcript: Transcript | None = None) -> ChainResult:
        """Execute the alternatives in order, stopping at the first success."""
        result = ChainResult(name=self.name)

        for index, command in enumerate(self.commands, start=1):
            attempt = executor.run(command)
            result.attempts.append(attempt)
            if transcript is not None:
                transcript.record(attempt)

            if attempt.ok:
                logger.info(
                    "%s: succeeded with attempt %d/%d (%s)",
                    self.name, index, len(self.commands), command.display,
                )
                return result

            logger.debug(
                "%s: attempt %d/%d failed (exit %d)",
                self.name, index, len(self.commands), attempt.exit_code,
            )

        logger.warning("%s: all %d alternatives failed", self.name, len(self.commands))
        return result
