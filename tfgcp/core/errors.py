"""
Error taxonomy — every failure the tool reports maps to one of these.

Services raise; use cases catch ``TfgcpError`` into their result object;
the CLI prints the message and exits with ``exit_code``.
"""

from __future__ import annotations

from collections.abc import Sequence


class TfgcpError(Exception):
    """Base class for all reported failures."""

    exit_code = 1


class MissingCommandError(TfgcpError):
    """A required external command is not installed."""

    exit_code = 2

    def __init__(self, commands: Sequence[str]):
        self.commands = list(commands)
        names = ", ".join(f"'{c}'" for c in self.commands)
        noun = "command" if len(self.commands) == 1 else "commands"
        super().__init__(f"Required {noun} {names} not found. Please install it.")


class ValidationError(TfgcpError):
    """An argument or input file failed validation."""


class CommandError(TfgcpError):
    """An external command exited non-zero (or timed out)."""

    def __init__(self, message: str, *, command: Sequence[str] = (), returncode: int | None = None):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(message)


class UserAbortError(TfgcpError):
    """The operator declined an interactive confirmation."""

    def __init__(self, message: str = "Operation cancelled by user."):
        super().__init__(message)


class WorkflowError(TfgcpError):
    """A workflow precondition or lookup failed."""
