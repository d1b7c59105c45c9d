"""
Tests for argument validation and the confirmation contract.
"""

import pytest

from tfgcp.core.errors import UserAbortError, ValidationError
from tfgcp.core.services.confirm import (
    BANNER,
    answer_is_yes,
    confirmation_lines,
    require_confirmation,
)
from tfgcp.core.services.validation import BUILD_ID_PATTERN, validate_arg, validate_regex


class TestValidateArg:
    def test_allowed_value_returned(self):
        assert validate_arg("dev", arg_name="environment", allowed=["dev", "prod"]) == "dev"

    def test_rejected_value_message(self):
        with pytest.raises(ValidationError) as exc:
            validate_arg(
                "qa",
                arg_name="environment",
                allowed=["sandbox", "dev"],
                usage="tfgcp local <environment> <plan|apply>",
            )
        message = str(exc.value)
        assert "Invalid value for argument 'environment'" in message
        assert "You provided: 'qa'" in message
        assert "Allowed values: sandbox|dev" in message
        assert "Correct invocation: 'tfgcp local <environment> <plan|apply>'" in message

    def test_missing_value_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_arg(None, arg_name="action", allowed=["plan", "apply"])
        assert "You provided: ''" in str(exc.value)
        assert "Correct invocation" not in str(exc.value)

    def test_match_is_exact(self):
        with pytest.raises(ValidationError):
            validate_arg("Dev", arg_name="environment", allowed=["dev"])

    def test_rejected_value_exit_code(self):
        with pytest.raises(ValidationError) as exc:
            validate_arg("x", arg_name="a", allowed=["y"])
        assert exc.value.exit_code == 1


class TestValidateRegex:
    def test_build_id_accepted(self):
        value = "2026-01-31__9f8e7d6c5b4a3921"
        assert validate_regex(value, arg_name="build_id", pattern=BUILD_ID_PATTERN) == value

    @pytest.mark.parametrize("value", [
        "",
        "latest",
        "2026-01-31",
        "2026-01-31__XYZ",
        "../2026-01-31__9f8e7d6c5b4a3921",
    ])
    def test_bad_build_ids_rejected(self, value):
        with pytest.raises(ValidationError) as exc:
            validate_regex(value, arg_name="build_id", pattern=BUILD_ID_PATTERN)
        assert "Invalid format for argument 'build_id'" in str(exc.value)
        assert "Expected format" in str(exc.value)

    def test_pattern_is_searched(self):
        assert validate_regex("xx-abc-yy", arg_name="v", pattern="abc") == "xx-abc-yy"


class TestConfirmation:
    def test_lines_wrapped_in_banner(self):
        lines = confirmation_lines("Current GCP project is: p.")
        assert lines[0] == BANNER
        assert "Current GCP project is: p." in lines
        assert any("Type 'y' or 'Y'" in line for line in lines)

    def test_declined_raises_abort(self):
        with pytest.raises(UserAbortError) as exc:
            require_confirmation(lambda lines: False, "Go?")
        assert exc.value.exit_code == 1
        assert "cancelled" in str(exc.value)

    def test_accepted_passes(self):
        seen = []
        require_confirmation(lambda lines: seen.extend(lines) or True, "Go?")
        assert "Go?" in seen

    @pytest.mark.parametrize("answer,expected", [
        ("y", True),
        ("Y", True),
        ("yes", True),
        (" y", True),
        ("n", False),
        ("", False),
        (None, False),
        ("ok", False),
    ])
    def test_answer_is_yes(self, answer, expected):
        assert answer_is_yes(answer) is expected
