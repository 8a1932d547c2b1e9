from sessionmanager.core.modules.user.models import SECURITY_ADMIN
from sessionmanager.errors import ValidationError

KNOWN_PERMISSIONS = frozenset({SECURITY_ADMIN})

# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 2 characters
    - At most 72 bytes when UTF-8 encoded

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 2:
        raise ValidationError("Password must be at least 2 characters long")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")


def validate_permissions(permissions: list[str]) -> None:
    """Reject permission codes the application does not know about."""
    unknown = sorted(set(permissions) - KNOWN_PERMISSIONS)
    if unknown:
        raise ValidationError(f"Unknown permission codes: {', '.join(unknown)}")
