"""
CLI commands for Terraform workflows.

Thin wrappers over ``tfgcp.core.use_cases.local`` and
``tfgcp.core.use_cases.cloudbuild``.
"""

from __future__ import annotations

import click

from tfgcp.ui.cli.helpers import finish, load_settings_or_exit, prompt_confirm


@click.command("local")
@click.argument("environment")
@click.argument("action")
@click.argument("build_id", required=False)
@click.pass_context
def local(ctx: click.Context, environment: str, action: str, build_id: str | None) -> None:
    """Run terraform ACTION (plan|apply) for ENVIRONMENT from this machine.

    plan stores the plan in Cloud Storage and prints its build id;
    apply takes that BUILD_ID.

    Examples:

        tfgcp local dev plan

        tfgcp local dev apply 2026-01-31__9f8e7d6c5b4a3921
    """
    from tfgcp.core.use_cases.local import run_local

    settings, root = load_settings_or_exit(ctx)
    result = run_local(
        environment,
        action,
        build_id,
        settings=settings,
        root=root,
        confirm=prompt_confirm,
    )
    finish(result)

    if result.plan and not ctx.obj.get("quiet"):
        click.secho(f"✅ Plan stored: {result.plan.location}/", fg="green")
        click.echo(f"   Build id: {result.plan.build_id}")
    elif action == "apply" and not ctx.obj.get("quiet"):
        click.secho(f"✅ Applied plan {result.build_id}", fg="green")


@click.command("link")
@click.argument("environment")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def link(ctx: click.Context, environment: str, as_json: bool) -> None:
    """Link ENVIRONMENT to its remote state, bootstrapping it on first use."""
    from tfgcp.core.use_cases.local import run_link

    settings, root = load_settings_or_exit(ctx)
    result = run_link(environment, settings=settings, root=root, confirm=prompt_confirm)
    finish(result, as_json)

    assert result.link is not None  # set on success
    labels = {
        "bootstrap": "Remote state bootstrapped",
        "resume": "Remote state bootstrap completed",
        "attach": "Linked to remote state",
    }
    click.secho(f"✅ {labels.get(result.link.path, 'Linked')}: gs://{result.link.bucket}", fg="green")


@click.command("cloudbuild")
@click.argument("environment")
@click.argument("method", default="plan")
@click.option("--url", "-u", default=None, help="gs:// URL of the plan archive (apply only).")
@click.pass_context
def cloudbuild(ctx: click.Context, environment: str, method: str, url: str | None) -> None:
    """Hand a terraform METHOD (plan|apply) for ENVIRONMENT over to Cloud Build."""
    from tfgcp.core.use_cases.cloudbuild import run_cloudbuild

    settings, root = load_settings_or_exit(ctx)
    result = run_cloudbuild(
        environment,
        method,
        url=url,
        settings=settings,
        root=root,
        confirm=prompt_confirm,
    )
    finish(result)

    if not ctx.obj.get("quiet"):
        click.secho(f"✅ Cloud Build {method} for {environment} finished", fg="green")
