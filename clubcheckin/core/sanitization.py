"""Input sanitization utilities."""
import re

from clubcheckin.core.constants import PASSCODE_PATTERN


# Maximum length constraints for security
MAX_QR_TOKEN_LENGTH = 200     # Generated tokens are ~75 chars
MAX_PASSCODE_INPUT_LENGTH = 20


def sanitize_passcode(passcode) -> str:
    """
    Sanitize passcode input.

    Passcodes are typed by members, so surrounding whitespace is tolerated
    and integers are accepted and normalised to their string form.

    Args:
        passcode: The passcode as submitted

    Returns:
        The 6-digit passcode string

    Raises:
        ValueError: If the passcode is not exactly 6 digits
    """
    if isinstance(passcode, bool) or not isinstance(passcode, (str, int)):
        raise ValueError("Passcode must be a string")

    sanitized = str(passcode).strip()

    if len(sanitized) > MAX_PASSCODE_INPUT_LENGTH:
        raise ValueError("Invalid passcode format. Passcode must be 6 digits.")

    if not re.match(PASSCODE_PATTERN, sanitized):
        raise ValueError("Invalid passcode format. Passcode must be 6 digits.")

    return sanitized


def validate_qr_token_format(token: str) -> str:
    """
    Validate QR token format before processing.

    This prevents oversized or binary payloads from reaching the signature
    check and the database.

    Raises:
        ValueError: If token format is invalid
    """
    if not isinstance(token, str):
        raise ValueError("QR code data must be a string")

    token = token.strip()

    if not token:
        raise ValueError("QR code data is required")

    if len(token) > MAX_QR_TOKEN_LENGTH:
        raise ValueError(f"QR code data exceeds maximum length of {MAX_QR_TOKEN_LENGTH} characters")

    if not re.match(r'^[A-Za-z0-9._-]+$', token):
        raise ValueError("Invalid QR code format")

    return token
