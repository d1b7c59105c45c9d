"""Adapters — bindings for the external CLIs.

Public re-exports for convenient access.
"""

from tfgcp.adapters.shell.command import check_result, require_commands, run_command

__all__ = [
    "check_result",
    "require_commands",
    "run_command",
]
