"""
Unit tests for the password policy.
"""

import pytest

from it13.modules.auth.password_policy import (
    CHECK_MESSAGES,
    check_password_strength,
    is_valid_password,
)


class TestCheckPasswordStrength:
    def test_strong_password(self):
        strength = check_password_strength("Technicien#2024")
        assert strength.is_valid is True
        assert strength.failed == []
        assert strength.messages == []

    def test_reports_every_check(self):
        strength = check_password_strength("Technicien#2024")
        assert set(strength.checks) == {
            "min_length",
            "uppercase",
            "lowercase",
            "digit",
            "special",
            "not_common",
        }

    @pytest.mark.parametrize(
        ("password", "failed"),
        [
            ("Ab1!", ["min_length"]),
            ("technicien#2024", ["uppercase"]),
            ("TECHNICIEN#2024", ["lowercase"]),
            ("Technicien#abcd", ["digit"]),
            ("Technicien2024", ["special"]),
            ("Password#2024", ["not_common"]),
            ("Azerty#2024x", ["not_common"]),
        ],
    )
    def test_single_failure(self, password, failed):
        strength = check_password_strength(password)
        assert strength.failed == failed
        assert strength.messages == [CHECK_MESSAGES[name] for name in failed]

    def test_empty_password_fails_everything_but_common(self):
        strength = check_password_strength("")
        assert strength.failed == ["min_length", "uppercase", "lowercase", "digit", "special"]

    def test_common_pattern_is_case_insensitive(self):
        assert is_valid_password("xxPASSWORD#1a") is False
