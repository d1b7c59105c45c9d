"""
Plan store — archive saved plans and move them through Cloud Storage.

Layout of one stored plan:

    gs://<project><suffix>/<prefix>/<build_id>/tfplan.tar.gz
    gs://<project><suffix>/<prefix>/<build_id>/tfplan.txt

``build_id`` is ``<YYYY-MM-DD>__<hex>``; it is what ``apply`` takes to
find the plan again.
"""

from __future__ import annotations

import logging
import secrets
import tarfile
from datetime import date
from pathlib import Path

from tfgcp.core.errors import WorkflowError
from tfgcp.core.models.settings import Settings
from tfgcp.core.services import gcp_ops
from tfgcp.core.services.terraform_ops import PLAN_FILE

logger = logging.getLogger(__name__)

ARCHIVE_FILE = f"{PLAN_FILE}.tar.gz"
TEXT_FILE = f"{PLAN_FILE}.txt"
LOCAL_ARTIFACTS = (PLAN_FILE, ARCHIVE_FILE, TEXT_FILE)


def new_build_id(today: date | None = None) -> str:
    """A fresh ``<date>__<hex>`` plan identifier."""
    return f"{(today or date.today()).isoformat()}__{secrets.token_hex(8)}"


def plan_prefix_url(settings: Settings, project_id: str, build_id: str) -> str:
    bucket = settings.plans_bucket(project_id)
    return f"gs://{bucket}/{settings.plans_prefix}/{build_id}"


def archive_url(settings: Settings, project_id: str, build_id: str) -> str:
    return f"{plan_prefix_url(settings, project_id, build_id)}/{ARCHIVE_FILE}"


# ═══════════════════════════════════════════════════════════════════
#  Local archive
# ═══════════════════════════════════════════════════════════════════


def create_archive(work_dir: Path) -> Path:
    """Pack ``tfplan`` into ``tfplan.tar.gz``."""
    plan = work_dir / PLAN_FILE
    if not plan.is_file():
        raise WorkflowError(f"No plan file to archive: {plan}")

    archive = work_dir / ARCHIVE_FILE
    with tarfile.open(archive, "w:gz") as tar:
        tar.add(plan, arcname=PLAN_FILE)
    logger.debug("Archived %s (%d bytes)", archive, archive.stat().st_size)
    return archive


def extract_archive(archive: Path, work_dir: Path) -> Path:
    """Unpack ``tfplan`` from an archive into ``work_dir``.

    Only a regular ``tfplan`` member is accepted, so an archive can't
    write anywhere else.
    """
    try:
        with tarfile.open(archive, "r:gz") as tar:
            try:
                member = tar.getmember(PLAN_FILE)
            except KeyError as e:
                raise WorkflowError(f"{archive.name} does not contain {PLAN_FILE}") from e
            if not member.isfile():
                raise WorkflowError(f"{PLAN_FILE} in {archive.name} is not a regular file")

            source = tar.extractfile(member)
            assert source is not None  # regular file member
            target = work_dir / PLAN_FILE
            with source, target.open("wb") as out:
                out.write(source.read())
    except tarfile.TarError as e:
        raise WorkflowError(f"Cannot read plan archive {archive}: {e}") from e

    return target


def remove_local_artifacts(work_dir: Path) -> None:
    for name in LOCAL_ARTIFACTS:
        (work_dir / name).unlink(missing_ok=True)


# ═══════════════════════════════════════════════════════════════════
#  Remote
# ═══════════════════════════════════════════════════════════════════


def upload_plan(work_dir: Path, settings: Settings, project_id: str, build_id: str) -> str:
    """Upload the archive and text rendering.

    Returns:
        The gs:// prefix the plan was stored under.
    """
    prefix = plan_prefix_url(settings, project_id, build_id)
    for name in (ARCHIVE_FILE, TEXT_FILE):
        gcp_ops.copy(work_dir / name, f"{prefix}/{name}")
    logger.info("Uploaded plan to %s/", prefix)
    return prefix


def download_plan(work_dir: Path, settings: Settings, project_id: str, build_id: str) -> Path:
    """Fetch and unpack a stored plan into ``work_dir``.

    Raises:
        WorkflowError: The archive does not exist or is unusable.
    """
    url = archive_url(settings, project_id, build_id)
    if not gcp_ops.object_exists(url):
        raise WorkflowError(f"No plan archive found at {url}")

    archive = work_dir / ARCHIVE_FILE
    gcp_ops.copy(url, archive)
    logger.info("Downloaded plan %s", build_id)
    return extract_archive(archive, work_dir)
