"""Shared API dependencies."""
from typing import Optional
import jwt
from fastapi import HTTPException, Request, WebSocket, status
from pydantic import ValidationError

from clubcheckin.core.constants import ROLES
from clubcheckin.core.security import decode_access_token
from clubcheckin.db import get_db, get_db_context
from clubcheckin.realtime.broadcaster import Broadcaster
from clubcheckin.schemas.auth import CurrentUser

__all__ = [
    "get_db",
    "get_db_context",
    "get_current_user",
    "get_broadcaster",
    "authenticate_websocket",
]


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


def _user_from_token(token: str) -> CurrentUser:
    """Decode an access token into the caller's identity.

    Raises:
        jwt.PyJWTError: signature, expiry or structural failure
        ValueError: claims are missing or the role is unknown
    """
    payload = decode_access_token(token)
    if payload.get("role") not in ROLES:
        raise ValueError("Unknown role")
    return CurrentUser(
        user_id=payload.get("sub"),
        role=payload["role"],
        first_name=payload.get("first_name") or "",
        last_name=payload.get("last_name") or "",
    )


def get_current_user(request: Request) -> CurrentUser:
    """Authenticate the caller from a bearer token or the access_token cookie."""
    token = _bearer_token(request.headers.get("Authorization")) or request.cookies.get("access_token")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        return _user_from_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except (jwt.PyJWTError, ValueError, ValidationError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def authenticate_websocket(websocket: WebSocket) -> Optional[CurrentUser]:
    """Identify a realtime handshake, or None if it carries no valid token."""
    token = (
        websocket.query_params.get("token")
        or websocket.cookies.get("access_token")
        or _bearer_token(websocket.headers.get("Authorization"))
    )
    if not token:
        return None

    try:
        return _user_from_token(token)
    except (jwt.PyJWTError, ValueError, ValidationError):
        return None


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster
