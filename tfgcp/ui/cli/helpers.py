"""
Shared helpers for CLI commands — settings loading, prompting, exit.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

import click

from tfgcp.core.models.settings import Settings
from tfgcp.core.services.confirm import answer_is_yes


def load_settings_or_exit(ctx: click.Context) -> tuple[Settings, Path]:
    """Load settings and the project root, or print the error and exit 1."""
    from tfgcp.core.config.loader import (
        ConfigError,
        find_config_file,
        load_settings,
        project_root,
    )

    config_path: Path | None = ctx.obj.get("config_path")
    if config_path is None:
        config_path = find_config_file()

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(e.exit_code)

    if settings.debug and not (ctx.obj.get("debug") or ctx.obj.get("quiet")):
        _enable_debug_logging(ctx)

    return settings, project_root(config_path)


def _enable_debug_logging(ctx: click.Context) -> None:
    """Switch to DEBUG output when tfgcp.yml sets debug: true."""
    import os

    from tfgcp.core.observability.logging_config import setup_logging

    setup_logging(
        level="DEBUG",
        log_file=os.environ.get("TFGCP_LOG_FILE"),
        log_file_level=os.environ.get("TFGCP_LOG_FILE_LEVEL"),
        quiet_third_party=False,
    )
    ctx.obj["debug"] = True


def prompt_confirm(lines: Sequence[str]) -> bool:
    """Print the lines and read one answer; only y/Y confirms."""
    for line in lines:
        click.echo(line, err=True)
    answer = click.prompt("", default="", show_default=False, prompt_suffix="", err=True)
    if not answer_is_yes(answer):
        click.secho("Operation cancelled by user.", fg="red", err=True)
        return False
    return True


def finish(result, as_json: bool = False) -> None:
    """Print a workflow result and exit with its code."""
    import json

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)
