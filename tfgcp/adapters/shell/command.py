"""
Shell command adapter — execute external CLIs.

This is the most fundamental adapter: every gcloud, gsutil and
terraform invocation goes through ``run_command``.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from tfgcp.core.errors import CommandError, MissingCommandError

logger = logging.getLogger(__name__)


def require_commands(names: Iterable[str]) -> None:
    """Fail with ``MissingCommandError`` if any command is not on PATH."""
    missing = [name for name in names if shutil.which(name) is None]
    if missing:
        raise MissingCommandError(missing)


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: int | None = None,
    capture: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a command and return the completed process.

    Args:
        args: Command and arguments (no shell).
        cwd: Working directory (default: current).
        env: Extra environment variables, merged over ``os.environ``.
        timeout: Seconds before the command is killed (default: none).
        capture: Capture stdout/stderr. When False the command inherits
            the terminal, so interactive prompts reach the operator.

    Raises:
        MissingCommandError: The executable does not exist.
        CommandError: The command timed out.
    """
    full_env = {**os.environ, **env} if env else None
    logger.debug("Executing: %s (cwd=%s)", shlex.join(args), cwd or ".")

    try:
        return subprocess.run(
            list(args),
            cwd=str(cwd) if cwd else None,
            env=full_env,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise MissingCommandError([args[0]]) from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            f"{shlex.join(args[:2])} timed out after {timeout}s",
            command=args,
        ) from e


def check_result(
    result: subprocess.CompletedProcess[str],
    what: str,
) -> subprocess.CompletedProcess[str]:
    """Raise ``CommandError`` when ``result`` exited non-zero."""
    if result.returncode == 0:
        return result

    detail = (result.stderr or "").strip() if isinstance(result.stderr, str) else ""
    message = f"{what} failed (exit code {result.returncode})"
    if detail:
        message += f": {detail[-2000:]}"
    raise CommandError(message, command=result.args or (), returncode=result.returncode)
