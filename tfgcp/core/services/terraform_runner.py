"""
Terraform runner — local plan and apply with stored plans.

``run_plan`` saves, renders, archives and uploads a plan, then removes
the local copies. ``run_apply`` fetches a stored plan by build id,
asks for confirmation and applies exactly that plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tfgcp.core.errors import ValidationError
from tfgcp.core.models.context import RunContext
from tfgcp.core.models.settings import Settings
from tfgcp.core.services import plan_store, terraform_ops
from tfgcp.core.services.confirm import ConfirmFn, require_confirmation
from tfgcp.core.services.validation import BUILD_ID_PATTERN, validate_regex

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Where a plan was stored."""

    build_id: str
    location: str

    def to_dict(self) -> dict:
        return {"build_id": self.build_id, "location": self.location}


def run_plan(
    ctx: RunContext,
    settings: Settings,
    var_args: list[str],
    *,
    build_id: str | None = None,
) -> PlanResult:
    """Plan, render, archive and upload."""
    build_id = build_id or plan_store.new_build_id()
    env = ctx.terraform_env(settings.bucket_env_var)

    try:
        terraform_ops.terraform_plan(ctx.work_dir, var_args, env=env)

        text = terraform_ops.terraform_show(ctx.work_dir, env=env)
        (ctx.work_dir / plan_store.TEXT_FILE).write_text(text, encoding="utf-8")

        plan_store.create_archive(ctx.work_dir)
        location = plan_store.upload_plan(ctx.work_dir, settings, ctx.project_id, build_id)
    finally:
        plan_store.remove_local_artifacts(ctx.work_dir)

    logger.info("Plan stored with build id %s", build_id)
    logger.info("Apply it with: tfgcp local %s apply %s", ctx.environment, build_id)
    return PlanResult(build_id=build_id, location=location)


def run_apply(
    ctx: RunContext,
    settings: Settings,
    build_id: str | None,
    *,
    confirm: ConfirmFn,
) -> None:
    """Apply a stored plan.

    Raises:
        ValidationError: No build id, or a malformed one.
        WorkflowError: The stored plan does not exist.
        UserAbortError: The operator declined.
    """
    if not build_id:
        raise ValidationError(
            "apply needs the build id of a stored plan. "
            f"Run 'tfgcp local {ctx.environment} plan' first and pass the build id it prints."
        )
    validate_regex(
        build_id,
        arg_name="build_id",
        pattern=BUILD_ID_PATTERN,
        usage=f"tfgcp local {ctx.environment} apply <build_id>",
    )

    env = ctx.terraform_env(settings.bucket_env_var)
    try:
        plan_store.download_plan(ctx.work_dir, settings, ctx.project_id, build_id)

        require_confirmation(
            confirm,
            f"This will apply Terraform plan {build_id} in the "
            f"{ctx.project_id} {ctx.environment} environment.",
        )

        logger.info("Applying Terraform plan %s...", build_id)
        terraform_ops.terraform_apply(ctx.work_dir, plan_file=terraform_ops.PLAN_FILE, env=env)
    finally:
        plan_store.remove_local_artifacts(ctx.work_dir)

    logger.info("Terraform plan %s applied.", build_id)
