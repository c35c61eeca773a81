from datetime import datetime
from typing import Optional

from clubcheckin.core.security import create_access_token
from clubcheckin.schemas.auth import CurrentUser


def make_token(user: CurrentUser, expires_delta=None) -> str:
    """Mint an access token with the identity provider's claim layout."""
    return create_access_token(
        {
            "sub": str(user.user_id),
            "role": user.role,
            "first_name": user.first_name,
            "last_name": user.last_name,
        },
        expires_delta=expires_delta,
    )


def auth_headers(user: CurrentUser) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from a JSON response (accepts a trailing Z)."""
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
