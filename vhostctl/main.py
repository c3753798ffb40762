"""
vhostctl — CLI entrypoint.

Usage:
    vhostctl --help
    vhostctl site add myapp.test --path /srv/myapp/public
    vhostctl apply myapp.test
    vhostctl config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from vhostctl import __version__
from vhostctl.core.observability.logging_config import resolve_level, setup_logging_from_env


@click.group()
@click.version_option(version=__version__, prog_name="vhostctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to vhostctl.yml (default: $VHOSTCTL_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """vhostctl — provision local nginx + PHP-FPM virtual hosts."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # Logging is configured once, before any command runs
    setup_logging_from_env(resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.argument("domain")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def apply(ctx: click.Context, domain: str, as_json: bool) -> None:
    """Re-run the apply pipeline for a recorded site."""
    from vhostctl.core.use_cases.provision import apply_site
    from vhostctl.ui.cli.site import echo_site_result

    result = apply_site(
        domain,
        config_path=ctx.obj.get("config_path"),
        executor=ctx.obj.get("executor"),
    )
    echo_site_result(ctx, result, "applied", as_json)


@cli.group()
def config() -> None:
    """Settings commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate vhostctl.yml and probe the host."""
    from vhostctl.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.settings is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Config:       {result.config_path or '(built-in defaults)'}")
        click.echo(f"   PHP versions: {', '.join(sorted(result.settings.php_map))}")
        click.echo(f"   State dir:    {result.state_dir}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


@cli.command()
@click.option("-n", "count", type=int, default=20, show_default=True, help="Number of entries.")
@click.option("--domain", default=None, help="Only entries for this domain.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, count: int, domain: str | None, as_json: bool) -> None:
    """Show recent provisioning runs from the audit ledger."""
    from vhostctl.core.errors import VhostctlError
    from vhostctl.core.use_cases.provision import read_history

    try:
        entries = read_history(count, domain=domain, config_path=ctx.obj.get("config_path"))
    except VhostctlError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No runs recorded.")
        return

    for entry in entries:
        status_color = {"ok": "green", "failed": "red"}.get(entry.status, "white")
        click.echo(f"{entry.timestamp}  {entry.operation_type:<12} {entry.domain}  ", nl=False)
        click.secho(entry.status, fg=status_color, nl=False)
        if entry.failed_step:
            click.echo(f"  at {entry.failed_step}: {entry.error}")
        else:
            click.echo(f"  ({entry.duration_ms}ms)")


# ── Register sub-groups ─────────────────────────────────────────

from vhostctl.ui.cli.site import site  # noqa: E402

cli.add_command(site)


if __name__ == "__main__":
    cli()
