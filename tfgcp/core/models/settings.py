"""
Settings model — tool configuration loaded from tfgcp.yml.

Every key has a default, so a project without a config file still
works with the conventional layout (``terraform/<environment>``).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_ENVIRONMENTS = ["sandbox", "dev", "staging", "prod"]
DEFAULT_BOOTSTRAP_FILES = ["setup.tf", "providers.tf", "variables.tf", "config.auto.tfvars"]


class CloudBuildSettings(BaseModel):
    """Where the Cloud Build configs and ignore file live (relative to root)."""

    plan_config: str = "configs/build_configs/plan.cloudbuild.yaml"
    apply_config: str = "configs/build_configs/apply.cloudbuild.yaml"
    ignore_file: str = ".gcloudignore"


class Settings(BaseModel):
    """Tool settings.

    ``env_dir`` is a template; ``{environment}`` is replaced with the
    selected environment name to get the Terraform working directory.
    """

    environments: list[str] = Field(default_factory=lambda: list(DEFAULT_ENVIRONMENTS))
    env_dir: str = "terraform/{environment}"
    required_commands: list[str] = Field(
        default_factory=lambda: ["gcloud", "gsutil", "terraform"]
    )

    # ── Remote state ─────────────────────────────────────────────
    backend_type: str = "gcs"
    bootstrap_files: list[str] = Field(default_factory=lambda: list(DEFAULT_BOOTSTRAP_FILES))
    state_bucket: str | None = None
    state_bucket_patterns: list[str] = Field(
        default_factory=lambda: ["terraform-remote-backend", "tf-state-remote-backend"]
    )
    bucket_env_var: str = "TF_VAR_tf_remote_state_bucket"

    # ── Variables ────────────────────────────────────────────────
    tfvars_patterns: list[str] = Field(
        default_factory=lambda: ["*secrets*.tfvars", "*auto*.tfvars", "*.tfvars"]
    )

    # ── Plan archives ────────────────────────────────────────────
    plans_bucket_suffix: str = "-tf-plans"
    plans_prefix: str = "local"

    cloudbuild: CloudBuildSettings = Field(default_factory=CloudBuildSettings)

    debug: bool = False

    @field_validator("environments", "bootstrap_files", "state_bucket_patterns")
    @classmethod
    def _not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("must contain at least one entry")
        return value

    @field_validator("env_dir")
    @classmethod
    def _env_dir_template(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        try:
            value.format(environment="dev")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"invalid template {value!r}; the only placeholder is {{environment}} ({e!r})"
            ) from e
        return value

    def work_dir(self, root: Path, environment: str) -> Path:
        """Terraform working directory for an environment."""
        return (root / self.env_dir.format(environment=environment)).resolve()

    def plans_bucket(self, project_id: str) -> str:
        return f"{project_id}{self.plans_bucket_suffix}"
