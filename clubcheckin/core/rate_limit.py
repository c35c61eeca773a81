"""Rate limiting configuration."""
import jwt
from slowapi import Limiter
from slowapi.util import get_remote_address

from clubcheckin.core.config import settings
from clubcheckin.core.security import decode_access_token


def get_client_ip(request):
    """Get client IP for rate limiting, considering proxies."""
    # Check X-Forwarded-For header (from reverse proxies)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


def get_caller_key(request) -> str:
    """
    Rate limit key: the authenticated caller plus the request path.

    Session routes carry the event id in their path, so their limits apply
    per caller per event. Requests without a valid token are keyed by
    client IP.
    """
    caller = f"ip:{get_client_ip(request)}"

    auth_header = request.headers.get("Authorization", "")
    token = request.cookies.get("access_token")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()

    if token:
        try:
            payload = decode_access_token(token)
            if payload.get("sub") is not None:
                caller = f"user:{payload['sub']}"
        except jwt.PyJWTError:
            # Unusable token, keyed by IP
            pass

    return f"{caller}:{request.url.path}"


limiter = Limiter(
    key_func=get_caller_key,
    default_limits=["100/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window"
)

# Rate limit definitions for different endpoint categories
RATE_LIMITS = {
    # Leader endpoints
    "session_start": "5/minute",  # Session creation per leader per event
    "session_end": "10/minute",
    "session_read": "30/minute",  # Session info, QR image and member list polling

    # Member endpoints (brute-force defence: 6 digits is a small space)
    "qr_checkin": "10/minute",
    "passcode_checkin": "5/minute",
}
