"""
Cloud Build use case — hand a plan or apply over to Cloud Build.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from tfgcp.adapters.shell.command import require_commands
from tfgcp.core.errors import TfgcpError, UserAbortError, ValidationError, WorkflowError
from tfgcp.core.models.settings import Settings
from tfgcp.core.persistence.audit import AuditEntry, AuditWriter
from tfgcp.core.services import cloudbuild, gcp_ops
from tfgcp.core.services.confirm import ConfirmFn, require_confirmation
from tfgcp.core.services.validation import validate_arg, validate_regex
from tfgcp.core.use_cases.session import validate_environment

logger = logging.getLogger(__name__)

METHODS = ("plan", "apply")
URL_PATTERN = r"^gs://[^/]+/.+"


@dataclass
class CloudBuildResult:
    """Result of a Cloud Build handover."""

    environment: str = ""
    method: str = ""
    project_id: str = ""
    url: str = ""
    error: str | None = None
    exit_code: int = 0
    aborted: bool = False

    @property
    def status(self) -> str:
        if self.aborted:
            return "aborted"
        return "failed" if self.error else "ok"

    def to_dict(self) -> dict:
        result = {
            "environment": self.environment,
            "method": self.method,
            "project_id": self.project_id,
            "status": self.status,
        }
        if self.url:
            result["url"] = self.url
        if self.error:
            result["error"] = self.error
        return result


def run_cloudbuild(
    environment: str | None,
    method: str | None,
    *,
    url: str | None = None,
    settings: Settings,
    root: Path,
    confirm: ConfirmFn,
    audit: AuditWriter | None = None,
) -> CloudBuildResult:
    """Submit a plan or apply build for an environment."""
    started = time.monotonic()
    audit = audit or AuditWriter(root=root)
    result = CloudBuildResult(environment=environment or "", method=method or "", url=url or "")
    usage = "tfgcp cloudbuild <environment> <plan|apply> [--url gs://...]"

    try:
        require_commands(settings.required_commands)
        validate_environment(environment, settings, usage)
        validate_arg(method, arg_name="method", allowed=METHODS, usage=usage)
        if method == "apply":
            if not url:
                raise ValidationError("For apply, --url <gs:// URL of the plan archive> is required.")
            validate_regex(url, arg_name="url", pattern=URL_PATTERN, usage=usage)

        work_dir = settings.work_dir(root, environment)
        if not work_dir.is_dir():
            raise WorkflowError(f"Terraform directory not found: {work_dir}")

        outputs = cloudbuild.read_build_outputs(work_dir)
        result.project_id = outputs.project_id

        gcp_ops.ensure_login()
        gcp_ops.set_project(outputs.project_id)

        require_confirmation(
            confirm,
            f"This will run a Terraform {method} in the "
            f"{outputs.project_id} {environment} environment.",
        )

        if method == "apply" and not gcp_ops.object_exists(url):
            raise WorkflowError(f"The specified URL does not exist: {url}")

        cloudbuild.submit(outputs, settings, root, environment, method, url=url)

    except TfgcpError as e:
        result.error = str(e)
        result.exit_code = e.exit_code
        result.aborted = isinstance(e, UserAbortError)

    audit.write(AuditEntry(
        operation_type="cloudbuild",
        action=result.method,
        environment=result.environment,
        project_id=result.project_id,
        status=result.status,
        duration_ms=int((time.monotonic() - started) * 1000),
        errors=[result.error] if result.error else [],
        context={"url": result.url} if result.url else {},
    ))
    return result
