"""
CLI commands for the Google Cloud session — login and project selection.
"""

from __future__ import annotations

import json
import sys

import click

from tfgcp.ui.cli.helpers import load_settings_or_exit


@click.group("gcp")
def gcp() -> None:
    """Google Cloud — login and project selection."""


def _resolve(ctx: click.Context, environment: str):
    """Validate the environment and resolve its context, or exit."""
    from tfgcp.core.errors import TfgcpError
    from tfgcp.core.use_cases.session import build_context, validate_environment

    settings, root = load_settings_or_exit(ctx)
    try:
        validate_environment(environment, settings, f"tfgcp gcp {ctx.info_name} <environment>")
        return build_context(environment, settings, root)
    except TfgcpError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(e.exit_code)


@gcp.command("login")
def login() -> None:
    """Log in to gcloud and application-default credentials if needed."""
    from tfgcp.adapters.shell.command import require_commands
    from tfgcp.core.errors import TfgcpError
    from tfgcp.core.services.gcp_ops import ensure_login

    try:
        require_commands(["gcloud"])
        ran = ensure_login()
    except TfgcpError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(e.exit_code)

    if not any(ran.values()):
        click.secho("✅ Already logged in", fg="green")
    else:
        click.secho("✅ Logged in", fg="green")


@gcp.command("project")
@click.argument("environment")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def project(ctx: click.Context, environment: str, as_json: bool) -> None:
    """Show the project id ENVIRONMENT resolves to."""
    run_ctx = _resolve(ctx, environment)

    if as_json:
        click.echo(json.dumps({
            "environment": run_ctx.environment,
            "project_id": run_ctx.project_id,
            "work_dir": str(run_ctx.work_dir),
        }, indent=2))
        return

    click.echo(run_ctx.project_id)


@gcp.command("set-project")
@click.argument("environment")
@click.pass_context
def set_project(ctx: click.Context, environment: str) -> None:
    """Make ENVIRONMENT's project the active gcloud project."""
    from tfgcp.adapters.shell.command import require_commands
    from tfgcp.core.errors import TfgcpError
    from tfgcp.core.services import gcp_ops

    run_ctx = _resolve(ctx, environment)
    try:
        require_commands(["gcloud"])
        changed = gcp_ops.set_project(run_ctx.project_id)
    except TfgcpError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(e.exit_code)

    verb = "set to" if changed else "already"
    click.secho(f"✅ Project {verb} {run_ctx.project_id}", fg="green")
