"""Check-in session storage and expiry evaluation.

Every read that needs to know whether a session can still accept
check-ins goes through ``is_live`` so expiry is judged the same way
everywhere: a session is live while ``is_active`` is set and
``now < expires_at``. Expiry is evaluated lazily on read; nothing sweeps
expired rows.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from clubcheckin.db.models import CheckInSession
from clubcheckin.core.utils import to_utc, utcnow


def is_live(session: CheckInSession, now: Optional[datetime] = None) -> bool:
    """True if the session is active and not yet expired."""
    now = to_utc(now or utcnow())
    return bool(session.is_active) and now < to_utc(session.expires_at)


def get_active_session(
    db: Session,
    event_id: int,
    now: Optional[datetime] = None
) -> Optional[CheckInSession]:
    """
    Get the live session for an event.

    Returns:
        The newest active session if it has not expired, None otherwise.
        An expired session is reported as absent even while its
        ``is_active`` flag is still set.
    """
    session = db.query(CheckInSession).filter(
        CheckInSession.event_id == event_id,
        CheckInSession.is_active.is_(True)
    ).order_by(CheckInSession.created_at.desc(), CheckInSession.id.desc()).first()

    if session and is_live(session, now):
        return session
    return None


def deactivate_sessions(db: Session, event_id: int) -> int:
    """Mark every active session of an event inactive (caller commits).

    Returns:
        Number of sessions that were active
    """
    return db.query(CheckInSession).filter(
        CheckInSession.event_id == event_id,
        CheckInSession.is_active.is_(True)
    ).update({CheckInSession.is_active: False}, synchronize_session="fetch")


def passcode_in_use(db: Session, passcode: str, now: Optional[datetime] = None) -> bool:
    """True if a live session already uses this passcode."""
    return any(is_live(s, now) for s in find_sessions_by_passcode(db, passcode))


def find_sessions_by_passcode(db: Session, passcode: str) -> List[CheckInSession]:
    """Active (possibly expired) sessions carrying this passcode, newest first."""
    return db.query(CheckInSession).filter(
        CheckInSession.passcode == passcode,
        CheckInSession.is_active.is_(True)
    ).order_by(CheckInSession.created_at.desc(), CheckInSession.id.desc()).all()


def find_session_by_qr_token(db: Session, qr_token: str) -> Optional[CheckInSession]:
    """Active (possibly expired) session carrying this QR token."""
    return db.query(CheckInSession).filter(
        CheckInSession.qr_token == qr_token,
        CheckInSession.is_active.is_(True)
    ).first()
