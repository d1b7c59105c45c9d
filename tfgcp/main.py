"""
tfgcp — CLI entrypoint.

Usage:
    tfgcp --help
    tfgcp local dev plan
    tfgcp local dev apply 2026-01-31__9f8e7d6c5b4a3921
    tfgcp link staging
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from tfgcp import __version__
from tfgcp.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="tfgcp")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to tfgcp.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """tfgcp — Terraform workflows on Google Cloud."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    env_debug = os.environ.get("DEBUG", "").strip().lower() in ("1", "true", "yes", "on")
    ctx.obj["debug"] = debug or env_debug
    if debug or env_debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("TFGCP_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("TFGCP_LOG_FILE"),
        log_file_level=os.environ.get("TFGCP_LOG_FILE_LEVEL"),
        quiet_third_party=not (debug or env_debug),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("-n", "count", default=20, type=int, help="Number of entries to show.")
@click.pass_context
def history(ctx: click.Context, as_json: bool, count: int) -> None:
    """Show recent workflow runs from the audit ledger."""
    from tfgcp.core.persistence.audit import AuditWriter
    from tfgcp.ui.cli.helpers import load_settings_or_exit

    _settings, root = load_settings_or_exit(ctx)
    entries = AuditWriter(root=root).read_recent(count)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.secho("📋 No runs recorded yet", fg="yellow")
        return

    click.secho(f"📋 Recent runs ({len(entries)}):", fg="cyan", bold=True)
    status_color = {"ok": "green", "aborted": "yellow", "failed": "red"}
    for entry in entries:
        build = f"  {entry.build_id}" if entry.build_id else ""
        click.echo(f"   {entry.timestamp[:19]}  {entry.operation_type:<10} ", nl=False)
        click.echo(f"{entry.environment:<8} {entry.action:<6} ", nl=False)
        click.secho(f"{entry.status:<8}", fg=status_color.get(entry.status, "white"), nl=False)
        click.echo(build)
        if ctx.obj.get("verbose") and entry.errors:
            for err in entry.errors:
                click.echo(f"     │ {err.splitlines()[0]}")

    click.echo()


# ── Register sub-command groups from tfgcp/ui/cli/ ────────────────

from tfgcp.ui.cli.gcp import gcp
from tfgcp.ui.cli.terraform import cloudbuild, link, local

cli.add_command(local)
cli.add_command(link)
cli.add_command(cloudbuild)
cli.add_command(gcp)


if __name__ == "__main__":
    cli()
