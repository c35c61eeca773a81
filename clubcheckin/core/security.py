"""Security and authentication utilities."""
import secrets
import hmac
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt

from clubcheckin.core import config
from clubcheckin.core.constants import (
    PASSCODE_LENGTH,
    QR_NONCE_BYTES,
    QR_SIGNATURE_LENGTH,
    QR_TOKEN_PREFIX,
)


def generate_passcode() -> str:
    """Generate a random 6-digit numeric passcode (leading zeros allowed)."""
    return f"{secrets.randbelow(10 ** PASSCODE_LENGTH):0{PASSCODE_LENGTH}d}"


def _sign(message: str) -> str:
    return hmac.new(
        config.settings.SECRET_KEY.encode(),
        message.encode(),
        hashlib.sha256
    ).hexdigest()[:QR_SIGNATURE_LENGTH]


def generate_qr_token(event_id: int, issued_at: Optional[datetime] = None) -> str:
    """
    Generate the opaque string embedded in a check-in QR code.

    Format: ``ci1.<event_id>.<nonce>.<issued_unix>.<signature>``. The nonce
    comes from ``secrets`` so tokens cannot be predicted, and the HMAC
    signature lets malformed or forged payloads be rejected before any
    database lookup.
    """
    issued = issued_at or datetime.now(timezone.utc)
    nonce = secrets.token_urlsafe(QR_NONCE_BYTES)
    body = f"{QR_TOKEN_PREFIX}.{event_id}.{nonce}.{int(issued.timestamp())}"
    return f"{body}.{_sign(body)}"


def parse_qr_token(token: str) -> Optional[int]:
    """
    Verify a QR token's structure and signature.

    Returns:
        The event id embedded in the token, or None if the token is
        malformed or its signature does not match.
    """
    parts = token.split(".")
    if len(parts) != 5 or parts[0] != QR_TOKEN_PREFIX:
        return None

    body, signature = ".".join(parts[:4]), parts[4]
    if not hmac.compare_digest(_sign(body), signature):
        return None

    try:
        return int(parts[1])
    except ValueError:
        return None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Production tokens come from the identity provider; this mirrors its
    claim layout for local development and tests.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, config.settings.SECRET_KEY, algorithm=config.settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: token is past its exp claim
        jwt.PyJWTError: any other verification failure
    """
    return jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])
