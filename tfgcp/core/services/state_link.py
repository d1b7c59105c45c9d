"""
Remote state linker — bind a Terraform working directory to its GCS backend.

Two states, decided by ``backend.tf``:

    NO_BACKEND  ──bootstrap──▶  LINKED  ──attach──▶  LINKED

Bootstrap (first run) creates the state bucket with a local-state apply
of the bootstrap files in an isolated temp directory, writes
``backend.tf`` and migrates the local state into the bucket. Attach
(every later run) only re-initializes against the bucket.

Bootstrap is two-phase. Once the isolated apply succeeds its state is
copied into the working directory and the ``applied`` checkpoint is
saved; only a successful migration moves it to ``migrated``. A run that
finds the ``applied`` checkpoint resumes at the migration instead of
applying again.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from tfgcp.core.errors import ValidationError, WorkflowError
from tfgcp.core.models.context import RunContext
from tfgcp.core.models.settings import Settings
from tfgcp.core.models.state import LinkState
from tfgcp.core.persistence.state_file import default_state_path, load_state, save_state
from tfgcp.core.services import gcp_ops, terraform_ops
from tfgcp.core.services.confirm import ConfirmFn, require_confirmation

logger = logging.getLogger(__name__)

BACKEND_FILE = "backend.tf"
TEMP_DIR_PREFIX = "terraform."

PATH_BOOTSTRAP = "bootstrap"
PATH_RESUME = "resume"
PATH_ATTACH = "attach"


@dataclass
class LinkResult:
    """Outcome of linking a working directory."""

    path: str = ""                  # bootstrap, resume, attach
    bucket: str = ""
    backend_created: bool = False
    state_migrated: bool = False

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "bucket": self.bucket,
            "backend_created": self.backend_created,
            "state_migrated": self.state_migrated,
        }


# ═══════════════════════════════════════════════════════════════════
#  Backend declaration
# ═══════════════════════════════════════════════════════════════════


def is_first_time_setup(work_dir: Path) -> bool:
    """True when the working directory has no backend declaration yet."""
    return not (work_dir / BACKEND_FILE).is_file()


def backend_block(backend_type: str) -> str:
    return f'terraform {{\n  backend "{backend_type}" {{}}\n}}\n'


def write_backend_file(work_dir: Path, backend_type: str = "gcs") -> bool:
    """Write backend.tf with an empty backend block.

    An existing backend.tf is never overwritten.

    Returns:
        True if the file was created.
    """
    backend_file = work_dir / BACKEND_FILE
    if backend_file.is_file():
        content = backend_file.read_text(encoding="utf-8", errors="ignore")
        if f'backend "{backend_type}"' in content:
            logger.warning("Backend block for %s already exists in %s.", backend_type, BACKEND_FILE)
        else:
            logger.warning(
                "%s exists but does not contain backend block for %s; leaving it unmodified.",
                BACKEND_FILE, backend_type,
            )
        return False

    backend_file.write_text(backend_block(backend_type), encoding="utf-8")
    logger.info("Created %s with backend block for %s.", BACKEND_FILE, backend_type)
    return True


# ═══════════════════════════════════════════════════════════════════
#  State bucket
# ═══════════════════════════════════════════════════════════════════


def resolve_state_bucket(ctx: RunContext, settings: Settings, state: LinkState) -> str:
    """Find the remote state bucket name.

    Precedence: explicit setting (or bucket env var) > bucket recorded in
    the link state > discovery by name pattern.

    Raises:
        WorkflowError: No bucket matches, or more than one does.
    """
    if settings.state_bucket:
        logger.debug("Using configured state bucket %s", settings.state_bucket)
        return settings.state_bucket

    if state.state_bucket:
        logger.debug("Using recorded state bucket %s", state.state_bucket)
        return state.state_bucket

    logger.info(
        "Checking for remote state bucket with pattern: %s",
        " | ".join(settings.state_bucket_patterns),
    )
    matches = gcp_ops.find_buckets(settings.state_bucket_patterns, ctx.project_id)

    if not matches:
        raise WorkflowError(
            f"No remote state bucket found in project {ctx.project_id} matching "
            f"{', '.join(settings.state_bucket_patterns)}."
        )
    if len(matches) > 1:
        raise WorkflowError(
            f"More than one remote state bucket matches in project {ctx.project_id}: "
            f"{', '.join(matches)}. Set 'state_bucket' in tfgcp.yml or "
            f"{settings.bucket_env_var} to choose one."
        )

    logger.info("Remote state bucket found: %s", matches[0])
    return matches[0]


def export_state_bucket(ctx: RunContext, settings: Settings, state: LinkState) -> str:
    """Resolve the bucket, record it in the context and the link state."""
    bucket = resolve_state_bucket(ctx, settings, state)
    ctx.state_bucket = bucket
    state.mark_linked(bucket)
    logger.debug("%s is set to '%s'", settings.bucket_env_var, bucket)
    return bucket


# ═══════════════════════════════════════════════════════════════════
#  Bootstrap steps
# ═══════════════════════════════════════════════════════════════════


def missing_bootstrap_files(work_dir: Path, files: list[str]) -> list[str]:
    return [name for name in files if not (work_dir / name).is_file()]


def run_isolated_setup(work_dir: Path, files: list[str]) -> Path | None:
    """Apply the bootstrap files with local state in a throwaway directory.

    The temp directory is removed on every path. Its state file (if any)
    is copied into ``work_dir`` before removal.

    Returns:
        Path of the copied state file, or None if the apply produced none.
    """
    with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX) as tmp:
        tmp_dir = Path(tmp)
        for name in files:
            shutil.copy2(work_dir / name, tmp_dir / name)
        logger.debug("Copied %s into %s", ", ".join(files), tmp_dir)

        logger.info("Running isolated terraform init for %s...", ", ".join(files))
        terraform_ops.terraform_init(tmp_dir, backend=False)

        logger.info("Running isolated terraform apply...")
        terraform_ops.terraform_apply(tmp_dir, auto_approve=True)

        produced = tmp_dir / terraform_ops.LOCAL_STATE_FILE
        if not produced.is_file():
            logger.warning("Isolated apply produced no %s", terraform_ops.LOCAL_STATE_FILE)
            return None

        target = work_dir / terraform_ops.LOCAL_STATE_FILE
        shutil.copy2(produced, target)
        return target


def migrate_local_state(ctx: RunContext, settings: Settings) -> None:
    """Move local state into the configured backend."""
    if not ctx.state_bucket:
        raise WorkflowError(f"{settings.bucket_env_var} is not set. Cannot migrate state.")

    logger.info("Migrating local Terraform state to remote backend...")
    terraform_ops.terraform_init(
        ctx.work_dir,
        migrate_state=True,
        backend_config={"bucket": ctx.state_bucket},
        env=ctx.terraform_env(settings.bucket_env_var),
    )
    logger.info("Terraform state successfully migrated to remote backend.")


def _complete_bootstrap(
    ctx: RunContext,
    settings: Settings,
    state: LinkState,
    state_path: Path,
    result: LinkResult,
) -> LinkResult:
    """Phase two: declare the backend, find the bucket, migrate."""
    result.backend_created = write_backend_file(ctx.work_dir, settings.backend_type)
    result.bucket = export_state_bucket(ctx, settings, state)
    save_state(state, state_path)

    migrate_local_state(ctx, settings)
    state.mark_migrated()
    save_state(state, state_path)
    result.state_migrated = True

    logger.info("Remote state backend configured successfully.")
    return result


def bootstrap_remote_state(
    ctx: RunContext,
    settings: Settings,
    *,
    confirm: ConfirmFn,
    state: LinkState | None = None,
) -> LinkResult:
    """NO_BACKEND → LINKED."""
    state_path = default_state_path(ctx.work_dir)
    if state is None:
        state = load_state(state_path)

    require_confirmation(
        confirm,
        "Terraform remote state is not yet configured (no backend.tf found).",
        "This will now bootstrap remote state by:",
        "  1. Running an initial local terraform apply to create the remote state bucket.",
        "  2. Migrating the local state to the remote bucket once created.",
        f"Environment: {ctx.environment}   Project: {ctx.project_id}",
    )

    logger.info("Running local terraform init for setup...")
    terraform_ops.terraform_init(ctx.work_dir, backend=False)

    missing = missing_bootstrap_files(ctx.work_dir, settings.bootstrap_files)
    if missing:
        raise ValidationError(
            f"Bootstrap files not found in {ctx.work_dir}: {', '.join(missing)} "
            f"(required: {', '.join(settings.bootstrap_files)})."
        )

    local_state = ctx.work_dir / terraform_ops.LOCAL_STATE_FILE
    if local_state.exists():
        raise WorkflowError(
            f"{local_state} already exists; move it away before bootstrapping remote state."
        )

    logger.info("Required Terraform files found. Running isolated setup.")
    run_isolated_setup(ctx.work_dir, settings.bootstrap_files)

    state.environment = ctx.environment
    state.project_id = ctx.project_id
    state.backend_type = settings.backend_type
    state.mark_applied()
    save_state(state, state_path)

    return _complete_bootstrap(ctx, settings, state, state_path, LinkResult(path=PATH_BOOTSTRAP))


def resume_bootstrap(ctx: RunContext, settings: Settings, state: LinkState) -> LinkResult:
    """Finish a bootstrap whose apply succeeded but whose migration did not."""
    logger.warning(
        "A previous bootstrap applied the setup but did not migrate its state; "
        "resuming at the migration."
    )
    state_path = default_state_path(ctx.work_dir)
    return _complete_bootstrap(ctx, settings, state, state_path, LinkResult(path=PATH_RESUME))


def attach_remote_state(ctx: RunContext, settings: Settings, state: LinkState) -> LinkResult:
    """LINKED → LINKED: re-initialize against the existing bucket."""
    logger.info("Starting remote state bucket linking workflow.")
    bucket = export_state_bucket(ctx, settings, state)

    terraform_ops.terraform_init(
        ctx.work_dir,
        backend_config={"bucket": bucket},
        env=ctx.terraform_env(settings.bucket_env_var),
    )
    save_state(state, default_state_path(ctx.work_dir))
    return LinkResult(path=PATH_ATTACH, bucket=bucket)


# ═══════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════


def link_remote_state(ctx: RunContext, settings: Settings, *, confirm: ConfirmFn) -> LinkResult:
    """Make sure the working directory is initialized against remote state.

    Raises:
        TfgcpError: Any failed step; nothing is retried.
    """
    state = load_state(default_state_path(ctx.work_dir))

    if state.awaiting_migration:
        return resume_bootstrap(ctx, settings, state)
    if is_first_time_setup(ctx.work_dir):
        return bootstrap_remote_state(ctx, settings, confirm=confirm, state=state)
    return attach_remote_state(ctx, settings, state)
