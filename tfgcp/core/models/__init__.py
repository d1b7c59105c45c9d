"""
Domain models — Pydantic types for tfgcp.

All models are re-exported here for convenient access:

    from tfgcp.core.models import LinkState, RunContext, Settings
"""

from tfgcp.core.models.context import RunContext
from tfgcp.core.models.settings import CloudBuildSettings, Settings
from tfgcp.core.models.state import (
    PHASE_APPLIED,
    PHASE_MIGRATED,
    PHASE_NONE,
    LinkState,
)

__all__ = [
    # settings.py
    "CloudBuildSettings",
    # state.py
    "LinkState",
    "PHASE_APPLIED",
    "PHASE_MIGRATED",
    "PHASE_NONE",
    # context.py
    "RunContext",
    "Settings",
]
