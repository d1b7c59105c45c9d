"""
Local use cases — run Terraform from this machine.

``run_local`` is the top-level workflow behind ``tfgcp local``:

    commands → arguments → project → login → link → var files → plan/apply

``run_link`` stops after linking remote state. Both return a result
object instead of raising, and both write one audit entry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from tfgcp.adapters.shell.command import require_commands
from tfgcp.core.errors import TfgcpError, UserAbortError, ValidationError
from tfgcp.core.models.settings import Settings
from tfgcp.core.persistence.audit import AuditEntry, AuditWriter
from tfgcp.core.services import terraform_ops
from tfgcp.core.services.confirm import ConfirmFn
from tfgcp.core.services.state_link import LinkResult, link_remote_state
from tfgcp.core.services.terraform_runner import PlanResult, run_apply, run_plan
from tfgcp.core.services.validation import BUILD_ID_PATTERN, validate_arg, validate_regex
from tfgcp.core.use_cases.session import build_context, open_session, validate_environment

logger = logging.getLogger(__name__)

ACTIONS = ("plan", "apply")


@dataclass
class LocalRunResult:
    """Result of a local workflow run."""

    environment: str = ""
    action: str = ""
    project_id: str = ""
    build_id: str = ""
    link: LinkResult | None = None
    plan: PlanResult | None = None
    error: str | None = None
    exit_code: int = 0
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.aborted:
            return "aborted"
        return "ok" if self.ok else "failed"

    def to_dict(self) -> dict:
        result: dict = {
            "environment": self.environment,
            "action": self.action,
            "project_id": self.project_id,
            "status": self.status,
        }
        if self.build_id:
            result["build_id"] = self.build_id
        if self.link:
            result["link"] = self.link.to_dict()
        if self.plan:
            result["plan"] = self.plan.to_dict()
        if self.error:
            result["error"] = self.error
        return result


def _fail(result: LocalRunResult, error: TfgcpError) -> None:
    result.error = str(error)
    result.exit_code = error.exit_code
    result.aborted = isinstance(error, UserAbortError)


def _record(
    audit: AuditWriter,
    operation_type: str,
    result: LocalRunResult,
    started: float,
) -> None:
    audit.write(AuditEntry(
        operation_type=operation_type,
        action=result.action,
        environment=result.environment,
        project_id=result.project_id,
        build_id=result.build_id,
        status=result.status,
        duration_ms=int((time.monotonic() - started) * 1000),
        errors=[result.error] if result.error else [],
        context={"link": result.link.to_dict()} if result.link else {},
    ))


def run_local(
    environment: str | None,
    action: str | None,
    build_id: str | None = None,
    *,
    settings: Settings,
    root: Path,
    confirm: ConfirmFn,
    audit: AuditWriter | None = None,
) -> LocalRunResult:
    """Run terraform plan or apply for an environment.

    Args:
        environment: One of ``settings.environments``.
        action: ``plan`` or ``apply``.
        build_id: Stored plan to apply (required for apply).
        confirm: Interactive confirmation callback.
    """
    started = time.monotonic()
    audit = audit or AuditWriter(root=root)
    result = LocalRunResult(environment=environment or "", action=action or "")
    usage = "tfgcp local <environment> <plan|apply> [build_id]"

    try:
        require_commands(settings.required_commands)
        validate_environment(environment, settings, usage)
        validate_arg(action, arg_name="action", allowed=ACTIONS, usage=usage)
        if action == "apply":
            if not build_id:
                raise ValidationError(
                    "apply needs the build id of a stored plan. "
                    f"Run 'tfgcp local {environment} plan' first and pass the build id it prints."
                )
            validate_regex(
                build_id,
                arg_name="build_id",
                pattern=BUILD_ID_PATTERN,
                usage=f"tfgcp local {environment} apply <build_id>",
            )

        ctx = build_context(environment, settings, root)
        result.project_id = ctx.project_id

        open_session(ctx.project_id, confirm)

        result.link = link_remote_state(ctx, settings, confirm=confirm)

        if action == "plan":
            var_args = terraform_ops.build_var_args(ctx.work_dir)
            logger.debug("Variable files: %s", var_args)
            result.plan = run_plan(ctx, settings, var_args)
            result.build_id = result.plan.build_id
        else:
            result.build_id = build_id or ""
            run_apply(ctx, settings, build_id, confirm=confirm)

    except TfgcpError as e:
        _fail(result, e)

    _record(audit, "local", result, started)
    return result


def run_link(
    environment: str | None,
    *,
    settings: Settings,
    root: Path,
    confirm: ConfirmFn,
    audit: AuditWriter | None = None,
) -> LocalRunResult:
    """Link an environment's working directory to remote state only."""
    started = time.monotonic()
    audit = audit or AuditWriter(root=root)
    result = LocalRunResult(environment=environment or "", action="link")

    try:
        require_commands(settings.required_commands)
        validate_environment(environment, settings, "tfgcp link <environment>")

        ctx = build_context(environment, settings, root)
        result.project_id = ctx.project_id

        open_session(ctx.project_id, confirm)
        result.link = link_remote_state(ctx, settings, confirm=confirm)

    except TfgcpError as e:
        _fail(result, e)

    _record(audit, "link", result, started)
    return result
