"""
CLI commands for site records — add, list, update, remove, show.

Thin wrappers over ``vhostctl.core.use_cases``.

Usage::

    vhostctl site add myapp.test --path /srv/myapp/public --php 8.2
    vhostctl site list --json
    vhostctl site update myapp.test --disable
    vhostctl site remove myapp.test
    vhostctl site show myapp.test
"""

from __future__ import annotations

import json
import sys

import click

from vhostctl.core.use_cases.provision import SiteResult


def echo_site_result(ctx: click.Context, result: SiteResult, action: str, as_json: bool = False) -> None:
    """Print a use case result and exit 1 on failure.

    The transcript is shown on failure, and on success with --verbose.
    """
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    domain = result.site.domain if result.site else ""

    if report is None:
        if not ctx.obj.get("quiet"):
            click.secho(f"✅ {domain}: {action} (not applied)", fg="green")
        return

    if report.ok:
        if ctx.obj.get("verbose"):
            click.echo(report.log)
        if not ctx.obj.get("quiet"):
            click.secho(f"✅ {domain}: {action} ({report.duration_ms}ms)", fg="green", bold=True)
        return

    click.echo(report.log, err=True)
    click.secho(
        f"❌ {domain}: {report.operation} failed at step '{report.failed_step}'",
        fg="red",
        bold=True,
        err=True,
    )
    if report.error:
        click.echo(f"   {report.error}", err=True)
    click.secho(
        "   Changes made before the failing step were not undone.",
        fg="yellow",
        err=True,
    )
    sys.exit(1)


@click.group()
def site() -> None:
    """Sites — record, provision, and remove virtual hosts."""


# ── Add ─────────────────────────────────────────────────────────


@site.command("add")
@click.argument("domain")
@click.option("--path", "source_path", required=True, help="Document root (absolute path).")
@click.option("--php", "php_version", default=None, help="PHP version (default from settings).")
@click.option("--disabled", is_flag=True, help="Record the site as disabled.")
@click.option("--no-apply", is_flag=True, help="Only record the site; don't provision it.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def add(
    ctx: click.Context,
    domain: str,
    source_path: str,
    php_version: str | None,
    disabled: bool,
    no_apply: bool,
    as_json: bool,
) -> None:
    """Record a new site and provision it."""
    from vhostctl.core.use_cases.provision import provision_site

    result = provision_site(
        domain,
        source_path,
        php_version,
        enabled=not disabled,
        apply=not no_apply,
        config_path=ctx.obj.get("config_path"),
        executor=ctx.obj.get("executor"),
    )
    echo_site_result(ctx, result, "added", as_json)


# ── List ────────────────────────────────────────────────────────


@site.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_(ctx: click.Context, as_json: bool) -> None:
    """List recorded sites."""
    from vhostctl.core.errors import VhostctlError
    from vhostctl.core.use_cases.provision import list_sites

    try:
        sites = list_sites(ctx.obj.get("config_path"))
    except VhostctlError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([s.model_dump(mode="json") for s in sites], indent=2))
        return

    if not sites:
        click.echo("No sites recorded.")
        return

    click.secho(f"\n🌐 Sites: {len(sites)}", fg="cyan", bold=True)
    for s in sites:
        state = click.style("enabled", fg="green") if s.enabled else click.style("disabled", fg="yellow")
        click.echo(f"   • {s.domain}  [PHP {s.php_version}]  {state}  → {s.source_path}")
    click.echo()


# ── Update ──────────────────────────────────────────────────────


@site.command("update")
@click.argument("domain")
@click.option("--path", "source_path", default=None, help="New document root.")
@click.option("--php", "php_version", default=None, help="New PHP version.")
@click.option("--enable/--disable", "enabled", default=None, help="Enable or disable the site.")
@click.option("--no-apply", is_flag=True, help="Only update the record; don't provision.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(
    ctx: click.Context,
    domain: str,
    source_path: str | None,
    php_version: str | None,
    enabled: bool | None,
    no_apply: bool,
    as_json: bool,
) -> None:
    """Change a site's desired state and re-apply it."""
    from vhostctl.core.use_cases.provision import update_site

    result = update_site(
        domain,
        source_path=source_path,
        php_version=php_version,
        enabled=enabled,
        apply=not no_apply,
        config_path=ctx.obj.get("config_path"),
        executor=ctx.obj.get("executor"),
    )
    echo_site_result(ctx, result, "updated", as_json)


# ── Remove ──────────────────────────────────────────────────────


@site.command("remove")
@click.argument("domain")
@click.option("--keep-record", is_flag=True, help="Deprovision but keep the site record.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove(ctx: click.Context, domain: str, keep_record: bool, as_json: bool) -> None:
    """Deprovision a site and delete its record."""
    from vhostctl.core.use_cases.provision import deprovision_site

    result = deprovision_site(
        domain,
        keep_record=keep_record,
        config_path=ctx.obj.get("config_path"),
        executor=ctx.obj.get("executor"),
    )
    echo_site_result(ctx, result, "removed", as_json)


# ── Show ────────────────────────────────────────────────────────


@site.command("show")
@click.argument("domain")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, domain: str, as_json: bool) -> None:
    """Show a site record and its live state."""
    from vhostctl.core.use_cases.status import get_site_status

    status = get_site_status(domain, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(status.to_dict(), indent=2))
        if status.error:
            sys.exit(1)
        return

    if status.error:
        click.secho(f"❌ {status.error}", fg="red")
        sys.exit(1)

    s = status.site
    vhost = status.vhost
    assert s is not None and vhost is not None  # guaranteed after error check above

    def mark(flag: bool | None) -> str:
        return click.style("✓", fg="green") if flag else click.style("✗", fg="red")

    click.secho(f"\n🌐 {s.domain}", fg="cyan", bold=True)
    click.echo(f"   Document root: {s.source_path}")
    click.echo(f"   PHP:           {s.php_version}")
    click.echo(f"   Desired:       {'enabled' if s.enabled else 'disabled'}")
    click.echo(f"   Updated:       {s.updated_at}")
    click.echo()
    click.secho("   Live state:", fg="white", bold=True)
    click.echo(f"     {mark(status.hosts_entry)} hosts entry")
    click.echo(f"     {mark(vhost.available_exists)} {vhost.available_path}")
    click.echo(f"     {mark(vhost.linked_to_available)} {vhost.enabled_path}")

    click.echo()
    if status.in_sync:
        click.secho("   In sync with the recorded state.", fg="green")
    else:
        click.secho(f"   Out of sync. Run: vhostctl apply {s.domain}", fg="yellow")
    click.echo()
