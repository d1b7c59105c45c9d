"""
LinkState — what the tool remembers about a working directory's backend.

Serialized to ``<work_dir>/.tfgcp/state.json``. It records the state
bucket once it has been found, so later runs do not depend on a bucket
listing, and the bootstrap checkpoint, so a bootstrap whose migration
failed resumes at the migration instead of applying again.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

PHASE_NONE = "none"
PHASE_APPLIED = "applied"      # bootstrap apply done, local state not yet migrated
PHASE_MIGRATED = "migrated"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class LinkState(BaseModel):
    """Backend link record of one working directory."""

    schema_version: int = 1

    environment: str = ""
    project_id: str = ""

    backend_type: str = "gcs"
    state_bucket: str | None = None
    bootstrap_phase: str = PHASE_NONE

    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)
    bootstrapped_at: str | None = None
    linked_at: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def mark_applied(self) -> None:
        self.bootstrap_phase = PHASE_APPLIED

    def mark_migrated(self) -> None:
        self.bootstrap_phase = PHASE_MIGRATED
        self.bootstrapped_at = _now_iso()

    def mark_linked(self, bucket: str) -> None:
        self.state_bucket = bucket
        self.linked_at = _now_iso()

    @property
    def awaiting_migration(self) -> bool:
        return self.bootstrap_phase == PHASE_APPLIED
