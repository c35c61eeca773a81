"""Credential validation: resolve a passcode or QR token to its session."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from clubcheckin.core.exceptions import ExpiredCredential, InvalidCredential
from clubcheckin.core.security import parse_qr_token
from clubcheckin.core.utils import to_utc, utcnow
from clubcheckin.db.models import CheckInSession
from clubcheckin.services.session_store import (
    find_session_by_qr_token,
    find_sessions_by_passcode,
    is_live,
)


def _pick_live(candidates: List[CheckInSession], now: datetime, expired_message: str,
               invalid_message: str) -> CheckInSession:
    for session in candidates:
        if is_live(session, now):
            return session
    if candidates:
        raise ExpiredCredential(expired_message)
    raise InvalidCredential(invalid_message)


def resolve_by_passcode(
    db: Session,
    passcode: str,
    now: Optional[datetime] = None
) -> CheckInSession:
    """
    Resolve a passcode to the live session that issued it.

    Raises:
        InvalidCredential: No active session carries this passcode
        ExpiredCredential: The matching session's window has closed
    """
    now = to_utc(now or utcnow())
    return _pick_live(
        find_sessions_by_passcode(db, passcode),
        now,
        expired_message="This passcode has expired. Ask the event leader for a new one.",
        invalid_message="Invalid passcode",
    )


def resolve_by_qr_token(
    db: Session,
    qr_token: str,
    now: Optional[datetime] = None
) -> CheckInSession:
    """
    Resolve a scanned QR token to the live session that issued it.

    Tokens with a bad signature are rejected without a lookup.

    Raises:
        InvalidCredential: Forged/malformed token or no active session matches
        ExpiredCredential: The matching session's window has closed
    """
    now = to_utc(now or utcnow())
    invalid_message = "Invalid QR code. Ask the event leader for a new QR code."

    if parse_qr_token(qr_token) is None:
        raise InvalidCredential(invalid_message)

    session = find_session_by_qr_token(db, qr_token)
    return _pick_live(
        [session] if session else [],
        now,
        expired_message="This QR code has expired. Ask the event leader for a new QR code.",
        invalid_message=invalid_message,
    )
