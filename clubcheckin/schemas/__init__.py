"""Pydantic schemas for request/response validation."""
from clubcheckin.schemas.auth import CurrentUser
from clubcheckin.schemas.checkin import (
    SessionStartRequest,
    SessionStartResponse,
    SessionInfo,
    PasscodeCheckinRequest,
    QrCheckinRequest,
    CheckedInMember,
)
from clubcheckin.schemas.common import SuccessResponse, ErrorResponse

__all__ = [
    "CurrentUser",
    "SessionStartRequest",
    "SessionStartResponse",
    "SessionInfo",
    "PasscodeCheckinRequest",
    "QrCheckinRequest",
    "CheckedInMember",
    "SuccessResponse",
    "ErrorResponse",
]
