"""
RunContext — everything one workflow run knows about its target.

Built once by the use case and passed explicitly to every service,
instead of services reading shared environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class RunContext(BaseModel):
    """The environment, project and directories of a single run."""

    environment: str
    project_id: str
    root: Path
    work_dir: Path
    state_bucket: str | None = None

    def terraform_env(self, bucket_env_var: str) -> dict[str, str]:
        """Extra environment for terraform subprocesses."""
        if not self.state_bucket:
            return {}
        return {bucket_env_var: self.state_bucket}
