"""
Password policy checks used at registration and password change.

The policy: a minimum length, at least one letter and one digit, and not one
of a short list of passwords that show up first in every credential dump.

Example:
    from common.utils import validate_password

    ok, problems = validate_password("abc")
    # False, ["Password must be at least 6 characters", "Password must contain at least one digit"]
"""

import re
from typing import FrozenSet, List, Tuple

MAX_PASSWORD_LENGTH = 128

COMMON_PASSWORDS: FrozenSet[str] = frozenset({
    "123456",
    "12345678",
    "123456789",
    "password",
    "password1",
    "password123",
    "qwerty123",
    "abc123",
    "letmein1",
    "welcome1",
    "iloveyou1",
    "admin123",
    "student1",
    "monkey123",
    "course123",
})

_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")


def is_common_password(password: str) -> bool:
    """Case-insensitive membership in COMMON_PASSWORDS."""
    return password.lower() in COMMON_PASSWORDS


def validate_password(password: str, min_length: int = 6) -> Tuple[bool, List[str]]:
    """
    Check a password against the policy.

    Args:
        password: Plain-text candidate
        min_length: Minimum number of characters

    Returns:
        (is_valid, problems); problems is empty when valid
    """
    problems: List[str] = []

    if len(password) < min_length:
        problems.append(f"Password must be at least {min_length} characters")
    elif len(password) > MAX_PASSWORD_LENGTH:
        problems.append(f"Password must be no more than {MAX_PASSWORD_LENGTH} characters")

    if not _LETTER.search(password):
        problems.append("Password must contain at least one letter")

    if not _DIGIT.search(password):
        problems.append("Password must contain at least one digit")

    if is_common_password(password):
        problems.append("This password is too common")

    return not problems, problems
