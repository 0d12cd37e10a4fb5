from coursehub.errors import ValidationError

MIN_PASSWORD_LENGTH = 6
MAX_IDENTIFIER_LENGTH = 64


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Minimum length of 6 characters
    - No leading or trailing whitespace

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if password != password.strip():
        raise ValidationError("Password cannot start or end with whitespace")


def normalize_identifier(value: str) -> str:
    """Canonical form of a username or account ID as stored and looked up."""
    return value.strip()


def validate_identifier(value: str, label: str) -> str:
    """Return the normalized username or account ID, rejecting blank or oversized values."""
    value = normalize_identifier(value)
    if not value:
        raise ValidationError(f"{label} is required")
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(f"{label} must be at most {MAX_IDENTIFIER_LENGTH} characters long")
    return value
