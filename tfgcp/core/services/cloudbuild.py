"""
Cloud Build handover — run plan/apply remotely with ``gcloud builds submit``.

The build parameters come from the root module's outputs of the
environment, so the Cloud Build service account, log and source buckets
are whatever the bootstrap Terraform created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from tfgcp.core.errors import WorkflowError
from tfgcp.core.models.settings import Settings
from tfgcp.core.services import gcp_ops, terraform_ops

logger = logging.getLogger(__name__)

BUILD_OUTPUTS = (
    "region",
    "project_id",
    "gcp_env",
    "tf_plans_bucket",
    "tf_cloud_build_service_account_email",
    "tf_cloud_build_logs_bucket",
    "tf_cloud_build_source_bucket",
    "tf_state_bucket_name",
)

_MASKED_OUTPUTS = {"tf_state_bucket_name": 16}


@dataclass
class BuildOutputs:
    """Terraform outputs a Cloud Build submission needs."""

    region: str
    project_id: str
    gcp_env: str
    tf_plans_bucket: str
    tf_cloud_build_service_account_email: str
    tf_cloud_build_logs_bucket: str
    tf_cloud_build_source_bucket: str
    tf_state_bucket_name: str

    @property
    def service_account(self) -> str:
        return (
            f"projects/{self.project_id}/serviceAccounts/"
            f"{self.tf_cloud_build_service_account_email}"
        )


def mask(value: str, hidden: int) -> str:
    """Hide the first ``hidden`` characters of a value."""
    return "X" * min(hidden, len(value)) + value[hidden:]


def read_build_outputs(work_dir: Path) -> BuildOutputs:
    """Read every build output from terraform state."""
    values: dict[str, str] = {}
    for name in BUILD_OUTPUTS:
        value = terraform_ops.terraform_output_raw(work_dir, name)
        if not value:
            raise WorkflowError(f"Terraform output '{name}' is empty in {work_dir}")
        values[name] = value

        shown = mask(value, _MASKED_OUTPUTS[name]) if name in _MASKED_OUTPUTS else value
        logger.info("Setting %s to: %s", name.upper(), shown)

    return BuildOutputs(**values)


def submit(
    outputs: BuildOutputs,
    settings: Settings,
    root: Path,
    environment: str,
    method: str,
    *,
    url: str | None = None,
) -> None:
    """Submit the plan or apply build.

    Args:
        method: ``plan`` or ``apply``.
        url: gs:// URL of the plan archive to apply (apply only).
    """
    substitutions = {
        "_GCP_ENV": environment,
        "_TF_STATE_BUCKET_NAME": outputs.tf_state_bucket_name,
    }
    if method == "plan":
        substitutions["_TF_PLANS_BUCKET"] = outputs.tf_plans_bucket
        config = settings.cloudbuild.plan_config
    else:
        config = settings.cloudbuild.apply_config

    gcp_ops.submit_build(
        config=root / config,
        substitutions=substitutions,
        region=outputs.region,
        service_account=outputs.service_account,
        log_dir=f"gs://{outputs.tf_cloud_build_logs_bucket}/{method}",
        staging_dir=f"gs://{outputs.tf_cloud_build_source_bucket}/{method}",
        ignore_file=root / settings.cloudbuild.ignore_file,
        source=url if method == "apply" else None,
    )
