"""
Terraform operations — thin wrappers over the ``terraform`` CLI.

Channel-independent: no click, no prompting. Commands that can prompt
or print long output (init, plan, apply) inherit the terminal; commands
whose output we need (show, output) capture it.

Every wrapper raises ``CommandError`` on a non-zero exit.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path

from tfgcp.adapters.shell.command import check_result, run_command

logger = logging.getLogger(__name__)

PLAN_FILE = "tfplan"
LOCAL_STATE_FILE = "terraform.tfstate"


# ═══════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════


def _run_terraform(
    *args: str,
    cwd: Path,
    env: Mapping[str, str] | None = None,
    timeout: int | None = None,
    capture: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run a terraform command."""
    return run_command(["terraform", *args], cwd=cwd, env=env, timeout=timeout, capture=capture)


def build_var_args(work_dir: Path) -> list[str]:
    """One ``-var-file=`` flag per .tfvars file directly in ``work_dir``."""
    return [f"-var-file=./{p.name}" for p in sorted(work_dir.glob("*.tfvars")) if p.is_file()]


# ═══════════════════════════════════════════════════════════════════
#  Commands
# ═══════════════════════════════════════════════════════════════════


def terraform_init(
    cwd: Path,
    *,
    backend: bool = True,
    backend_config: Mapping[str, str] | None = None,
    migrate_state: bool = False,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run terraform init.

    Args:
        backend: False initializes without any backend (local bootstrap).
        backend_config: ``-backend-config=key=value`` pairs.
        migrate_state: Copy existing state into the configured backend.
    """
    args = ["init"]
    if not backend:
        args.append("-backend=false")
    if migrate_state:
        args.append("-migrate-state")
    for key, value in (backend_config or {}).items():
        args.append(f"-backend-config={key}={value}")

    logger.debug("terraform %s (cwd=%s)", " ".join(args), cwd)
    check_result(_run_terraform(*args, cwd=cwd, env=env), f"terraform {' '.join(args[:2])}")


def terraform_apply(
    cwd: Path,
    *,
    plan_file: str | None = None,
    auto_approve: bool = False,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run terraform apply, either of a saved plan or of the configuration."""
    args = ["apply"]
    if auto_approve:
        args.append("-auto-approve")
    if plan_file:
        args.append(plan_file)
    check_result(_run_terraform(*args, cwd=cwd, env=env), "terraform apply")


def terraform_plan(
    cwd: Path,
    var_args: list[str],
    *,
    out: str = PLAN_FILE,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Run terraform plan and save the plan file.

    Returns:
        Path of the written plan file.
    """
    check_result(
        _run_terraform("plan", *var_args, "-out", out, cwd=cwd, env=env),
        "terraform plan",
    )
    return cwd / out


def terraform_show(
    cwd: Path,
    plan_file: str = PLAN_FILE,
    *,
    env: Mapping[str, str] | None = None,
) -> str:
    """Render a saved plan as plain text."""
    result = _run_terraform("show", "-no-color", plan_file, cwd=cwd, env=env, capture=True)
    return check_result(result, "terraform show").stdout


def terraform_output_raw(cwd: Path, name: str) -> str:
    """Read one root module output as a raw string."""
    result = _run_terraform("output", "-raw", name, cwd=cwd, capture=True, timeout=120)
    return check_result(result, f"terraform output {name}").stdout.strip()
