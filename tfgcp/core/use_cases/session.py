"""
Session prelude shared by the workflows.

Validates the environment, resolves its working directory and project,
then logs in, selects the project and has the operator confirm it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tfgcp.core.models.context import RunContext
from tfgcp.core.models.settings import Settings
from tfgcp.core.services import gcp_ops
from tfgcp.core.services.confirm import ConfirmFn, require_confirmation
from tfgcp.core.services.project_resolver import get_project_id
from tfgcp.core.services.validation import validate_arg

logger = logging.getLogger(__name__)


def validate_environment(environment: str | None, settings: Settings, usage: str) -> str:
    return validate_arg(
        environment,
        arg_name="environment",
        allowed=settings.environments,
        usage=usage,
    )


def build_context(environment: str, settings: Settings, root: Path) -> RunContext:
    """Resolve the working directory and project id of an environment."""
    work_dir = settings.work_dir(root, environment)
    project_id = get_project_id(work_dir, settings.tfvars_patterns)
    return RunContext(
        environment=environment,
        project_id=project_id,
        root=root,
        work_dir=work_dir,
    )


def confirm_active_project(confirm: ConfirmFn) -> str:
    """Show the active gcloud project and require confirmation."""
    active = gcp_ops.current_project() or "(unset)"
    require_confirmation(confirm, f"Current GCP project is: {active}.")
    logger.info("Project confirmation received: '%s' is the active GCP project.", active)
    return active


def open_session(project_id: str, confirm: ConfirmFn) -> None:
    """Log in, select the project and confirm it."""
    gcp_ops.ensure_login()
    gcp_ops.set_project(project_id)
    confirm_active_project(confirm)
