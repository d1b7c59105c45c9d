"""
Project resolver — find the Google Cloud project id of an environment.

The project id is read from the environment's ``.tfvars`` files: the
first file (in pattern order) containing ``project_id = "<value>"``
wins.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from tfgcp.core.errors import WorkflowError

logger = logging.getLogger(__name__)

_PROJECT_ID_RE = re.compile(r'^[ \t]*project_id[ \t]*=[ \t]*"([^"]+)"', re.MULTILINE)


def candidate_tfvars(work_dir: Path, patterns: Iterable[str]) -> list[Path]:
    """List .tfvars files in pattern order, each file once."""
    seen: set[Path] = set()
    files: list[Path] = []
    for pattern in patterns:
        for path in sorted(work_dir.glob(pattern)):
            if path.is_file() and path not in seen:
                seen.add(path)
                files.append(path)
    return files


def read_project_id(tfvars_file: Path) -> str | None:
    """Return the project_id assigned in a tfvars file, or None."""
    try:
        content = tfvars_file.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        logger.warning("Cannot read %s: %s", tfvars_file, e)
        return None
    match = _PROJECT_ID_RE.search(content)
    return match.group(1) if match else None


def find_tfvars_file_with_project_id(work_dir: Path, patterns: Iterable[str]) -> Path:
    """Return the first tfvars file that assigns project_id.

    Raises:
        WorkflowError: If no such file exists.
    """
    for path in candidate_tfvars(work_dir, patterns):
        if read_project_id(path):
            return path
        logger.debug("No project_id in %s, checking next file", path.name)
    raise WorkflowError(f"No tfvars files with project_id found in {work_dir}.")


def get_project_id(work_dir: Path, patterns: Iterable[str]) -> str:
    """Resolve the project id of the working directory.

    Raises:
        WorkflowError: If the directory is missing or no file assigns project_id.
    """
    if not work_dir.is_dir():
        raise WorkflowError(f"Terraform directory not found: {work_dir}")

    tfvars_file = find_tfvars_file_with_project_id(work_dir, patterns)
    project_id = read_project_id(tfvars_file)
    assert project_id is not None  # guaranteed by the search above
    logger.info("Found project_id: %s (%s)", project_id, tfvars_file.name)
    return project_id
