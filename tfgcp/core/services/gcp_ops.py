"""
Google Cloud operations — gcloud and gsutil wrappers.

Login checks, active project management, bucket listing, object
copy/existence and Cloud Build submission. Channel-independent: the
interactive logins are gcloud's own browser flows, nothing here
prompts.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterable, Mapping
from pathlib import Path

from tfgcp.adapters.shell.command import check_result, run_command
from tfgcp.core.errors import WorkflowError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════


def _run_gcloud(
    *args: str,
    timeout: int | None = 120,
    capture: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a gcloud command."""
    return run_command(["gcloud", *args], timeout=timeout, capture=capture)


def _run_gsutil(
    *args: str,
    timeout: int | None = 300,
) -> subprocess.CompletedProcess[str]:
    """Run a gsutil command."""
    return run_command(["gsutil", *args], timeout=timeout)


def _bucket_name(line: str) -> str:
    """``gs://name/`` -> ``name``."""
    name = line.strip()
    if name.startswith("gs://"):
        name = name[len("gs://"):]
    return name.rstrip("/")


# ═══════════════════════════════════════════════════════════════════
#  Authentication
# ═══════════════════════════════════════════════════════════════════


def has_active_account() -> bool:
    result = _run_gcloud("auth", "list", "--filter=status:ACTIVE", "--format=value(account)")
    return result.returncode == 0 and bool(result.stdout.strip())


def has_application_default_credentials() -> bool:
    result = _run_gcloud("auth", "application-default", "print-access-token")
    return result.returncode == 0


def ensure_login() -> dict:
    """Make sure a user login and application-default credentials exist.

    Missing ones are created with gcloud's interactive login flows.

    Returns:
        {"user_login": bool, "application_default": bool}, True where a
        login flow had to run.
    """
    ran = {"user_login": False, "application_default": False}

    if has_active_account():
        logger.info("Active gcloud user login found.")
    else:
        logger.info("No active gcloud user login found. Running 'gcloud auth login'...")
        check_result(_run_gcloud("auth", "login", timeout=None, capture=False), "gcloud auth login")
        ran["user_login"] = True

    if has_application_default_credentials():
        logger.info("Application default credentials found.")
    else:
        logger.info(
            "No application default credentials found. "
            "Running 'gcloud auth application-default login'..."
        )
        check_result(
            _run_gcloud("auth", "application-default", "login", timeout=None, capture=False),
            "gcloud auth application-default login",
        )
        ran["application_default"] = True

    return ran


# ═══════════════════════════════════════════════════════════════════
#  Project
# ═══════════════════════════════════════════════════════════════════


def current_project() -> str | None:
    """The active project of the gcloud config, or None if unset."""
    result = _run_gcloud("config", "get-value", "project")
    if result.returncode != 0:
        return None
    value = result.stdout.strip()
    return value if value and value != "(unset)" else None


def set_project(project_id: str) -> bool:
    """Make ``project_id`` the active gcloud and quota project.

    Returns:
        True if the project was changed, False if it was already active.
    """
    logger.info("Setting project to %s...", project_id)
    if current_project() == project_id:
        logger.info("Project is already set to %s.", project_id)
        return False

    check_result(_run_gcloud("config", "set", "project", project_id), "gcloud config set project")
    check_result(
        _run_gcloud("auth", "application-default", "set-quota-project", project_id),
        "gcloud auth application-default set-quota-project",
    )
    logger.info("Project is set to %s successfully.", project_id)
    return True


# ═══════════════════════════════════════════════════════════════════
#  Storage
# ═══════════════════════════════════════════════════════════════════


def list_buckets(project_id: str | None = None) -> list[str]:
    """Names of the buckets visible in a project (default project if None)."""
    args = ["ls"]
    if project_id:
        args += ["-p", project_id]
    result = check_result(_run_gsutil(*args), "gsutil ls")
    return [_bucket_name(line) for line in result.stdout.splitlines() if line.strip()]


def find_buckets(patterns: Iterable[str], project_id: str | None = None) -> list[str]:
    """Buckets whose name contains any of ``patterns``, in listing order."""
    patterns = list(patterns)
    matches = [b for b in list_buckets(project_id) if any(p in b for p in patterns)]
    logger.debug("Buckets matching %s: %s", patterns, matches)
    return matches


def object_exists(url: str) -> bool:
    result = _run_gsutil("ls", url)
    return result.returncode == 0 and bool(result.stdout.strip())


def copy(src: str | Path, dst: str | Path) -> None:
    """Copy between local paths and gs:// URLs."""
    check_result(_run_gsutil("cp", str(src), str(dst)), f"gsutil cp {src}")


# ═══════════════════════════════════════════════════════════════════
#  Cloud Build
# ═══════════════════════════════════════════════════════════════════


def submit_build(
    *,
    config: Path,
    substitutions: Mapping[str, str],
    region: str,
    service_account: str,
    log_dir: str,
    staging_dir: str,
    ignore_file: Path,
    source: str | None = None,
) -> None:
    """Submit a build to Cloud Build and stream its log.

    Raises:
        WorkflowError: If the build config file does not exist.
        CommandError: If the build fails.
    """
    if not config.is_file():
        raise WorkflowError(f"Cloud Build config not found: {config}")

    args = [
        "builds", "submit",
        f"--config={config}",
        "--substitutions=" + ",".join(f"{k}={v}" for k, v in substitutions.items()),
        "--region", region,
        "--service-account", service_account,
        "--gcs-log-dir", log_dir,
        "--gcs-source-staging-dir", staging_dir,
        f"--ignore-file={ignore_file}",
    ]
    if source:
        args.append(source)

    logger.info("Handing over to Google Cloud Build...")
    check_result(_run_gcloud(*args, timeout=None, capture=False), "gcloud builds submit")
