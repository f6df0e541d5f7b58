"""Unit tests for the password policy."""

import pytest

from common.utils import validate_password
from common.utils.password import MAX_PASSWORD_LENGTH, is_common_password


class TestValidatePassword:
    def test_valid(self):
        assert validate_password("course42") == (True, [])

    def test_reports_every_problem(self):
        ok, problems = validate_password("abc")
        assert not ok
        assert problems == [
            "Password must be at least 6 characters",
            "Password must contain at least one digit",
        ]

    def test_custom_min_length(self):
        assert not validate_password("course42", min_length=10)[0]

    def test_too_long(self):
        ok, problems = validate_password("a1" * MAX_PASSWORD_LENGTH)
        assert not ok
        assert "no more than" in problems[0]

    @pytest.mark.parametrize("password", ["password1", "PASSWORD123", "Course123"])
    def test_common(self, password):
        assert is_common_password(password)
        assert not validate_password(password)[0]
