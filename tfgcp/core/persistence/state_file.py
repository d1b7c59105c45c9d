"""
Link-state file — the bootstrap checkpoint on disk.

One JSON document per Terraform working directory, at
``<work_dir>/.tfgcp/state.json``. The linker reads it to learn whether a
bootstrap apply already ran (phase ``applied``) and which state bucket
was found last time, and rewrites it after each phase change. The file
is replaced with a rename so a run killed mid-write leaves the previous
checkpoint intact.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from tfgcp.core.models.state import LinkState

logger = logging.getLogger(__name__)

STATE_DIR = ".tfgcp"
STATE_FILE = "state.json"


def default_state_path(work_dir: Path) -> Path:
    """Checkpoint path for a Terraform working directory."""
    return work_dir / STATE_DIR / STATE_FILE


def load_state(path: Path) -> LinkState:
    """Read the checkpoint for a working directory.

    A missing file means nothing has been bootstrapped yet. An unreadable
    or invalid file is logged and treated the same way: the linker then
    decides from ``backend.tf`` alone, as on a first run.
    """
    if not path.is_file():
        logger.debug("No link state at %s", path)
        return LinkState()

    try:
        state = LinkState.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable link state %s: %s", path, e)
        return LinkState()

    logger.debug(
        "Link state %s: phase=%s bucket=%s", path, state.bootstrap_phase, state.state_bucket,
    )
    return state


def save_state(state: LinkState, path: Path) -> None:
    """Write the checkpoint, replacing any previous one in a single rename."""
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(state.model_dump(mode="json"), indent=2) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".state_", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        logger.error("Cannot record link state (phase=%s) at %s: %s", state.bootstrap_phase, path, e)
        raise
    logger.debug("Link state saved to %s (phase=%s)", path, state.bootstrap_phase)
