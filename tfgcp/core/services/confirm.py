"""
Interactive confirmation contract.

Core services never prompt themselves. They receive a ``ConfirmFn``
from the caller (the CLI passes one that reads the terminal, tests pass
a stub) and stop with ``UserAbortError`` when it returns False.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from tfgcp.core.errors import UserAbortError

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[Sequence[str]], bool]

BANNER = "================ USER CONFIRMATION REQUIRED ================"
RULE = "=" * len(BANNER)


def confirmation_lines(*body: str) -> list[str]:
    """Wrap message lines in the confirmation banner."""
    return [
        BANNER,
        *body,
        "Do you want to continue? Type 'y' or 'Y' and press Enter to continue.",
        RULE,
    ]


def require_confirmation(confirm: ConfirmFn, *body: str) -> None:
    """Ask for confirmation; raise ``UserAbortError`` unless given."""
    if not confirm(confirmation_lines(*body)):
        raise UserAbortError()
    logger.debug("Confirmation received")


def answer_is_yes(answer: str | None) -> bool:
    """Only an answer starting with y/Y confirms."""
    return bool(answer) and answer.strip()[:1].lower() == "y"
