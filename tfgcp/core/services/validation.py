"""
Argument validation — allow-list and format checks.

Pure: no I/O, no subprocess. Failures raise ``ValidationError`` with a
message that shows what was given, what is allowed and how the command
should have been invoked.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from tfgcp.core.errors import ValidationError

logger = logging.getLogger(__name__)

# <YYYY-MM-DD>__<hex>, as produced by plan_store.new_build_id()
BUILD_ID_PATTERN = r"^\d{4}-\d{2}-\d{2}__[0-9a-f]{8,64}$"


def _format_error(
    headline: str,
    arg_name: str,
    value: str,
    expected_label: str,
    expected: str,
    usage: str,
) -> str:
    lines = [
        f"Invalid {headline} for argument '{arg_name}'",
        f"    You provided: '{value}'",
        f"    {expected_label}: {expected}",
    ]
    if usage:
        lines.append(f"Correct invocation: '{usage}'")
    return "\n".join(lines)


def validate_arg(
    value: str | None,
    *,
    arg_name: str,
    allowed: Iterable[str],
    usage: str = "",
) -> str:
    """Check ``value`` against an allow-list.

    Returns:
        The value, unchanged.

    Raises:
        ValidationError: If the value is not allowed.
    """
    allowed = list(allowed)
    value = value or ""
    if value not in allowed:
        raise ValidationError(_format_error(
            "value", arg_name, value, "Allowed values", "|".join(allowed), usage,
        ))
    return value


def validate_regex(
    value: str | None,
    *,
    arg_name: str,
    pattern: str,
    usage: str = "",
) -> str:
    """Check ``value`` against a regular expression (searched, not anchored).

    Returns:
        The value, unchanged.

    Raises:
        ValidationError: If the value does not match.
    """
    value = value or ""
    if not re.search(pattern, value):
        raise ValidationError(_format_error(
            "format", arg_name, value, "Expected format", pattern, usage,
        ))
    logger.info("Selected %s: '%s'", arg_name, value)
    return value
