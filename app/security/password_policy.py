"""Credential checks for self-service access requests."""

import re


MIN_PASSWORD_LENGTH = 6

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_password(password: str) -> list[str]:
    """Validate an applicant password. Returns failure messages (empty if valid)."""
    errors = []

    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    return errors
