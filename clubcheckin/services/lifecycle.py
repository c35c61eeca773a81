"""Check-in session lifecycle: start, end and credential rotation."""
import threading
from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session

from clubcheckin.core.config import settings
from clubcheckin.core.constants import PASSCODE_MAX_ATTEMPTS
from clubcheckin.core.exceptions import InvalidSessionWindow
from clubcheckin.core.logging_config import get_logger
from clubcheckin.core.security import generate_passcode, generate_qr_token
from clubcheckin.core.utils import compute_expires_at, to_utc, utcnow
from clubcheckin.db.models import CheckInSession
from clubcheckin.services.session_store import deactivate_sessions, passcode_in_use

logger = get_logger(__name__)

# Serializes credential issuance so two sessions started at the same moment
# cannot both claim a passcode that was free when each checked it.
_issue_lock = threading.Lock()


def _unique_passcode(db: Session, now: datetime) -> str:
    for _ in range(PASSCODE_MAX_ATTEMPTS):
        passcode = generate_passcode()
        if not passcode_in_use(db, passcode, now):
            return passcode
    raise RuntimeError("Failed to generate a unique passcode")


def start_session(
    db: Session,
    event_id: int,
    created_by: int,
    *,
    start_time: Optional[time] = None,
    expire_time: Optional[time] = None,
    regenerate_on_checkin: bool = False,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> CheckInSession:
    """
    Open a check-in session for an event, replacing any existing one.

    Args:
        db: Database session
        event_id: Event the session belongs to
        created_by: User id of the leader/admin opening it
        start_time: Optional wall-clock opening time
        expire_time: Optional wall-clock closing time (rolls to the next
                     day when not after the start)
        regenerate_on_checkin: Rotate passcode and QR token after every
                               accepted check-in
        now: Creation instant, defaults to the current time
        tz: Zone for the wall-clock times, defaults to settings.TIMEZONE

    Returns:
        The new, committed CheckInSession

    Raises:
        InvalidSessionWindow: If the computed expiry is not in the future
    """
    now = to_utc(now or utcnow())
    tz = tz or ZoneInfo(settings.TIMEZONE)

    expires_at = compute_expires_at(
        now, tz, settings.CHECKIN_SESSION_MINUTES,
        start_time=start_time, expire_time=expire_time,
    )
    if expires_at <= now:
        raise InvalidSessionWindow()

    with _issue_lock:
        try:
            replaced = deactivate_sessions(db, event_id)
            session = CheckInSession(
                event_id=event_id,
                passcode=_unique_passcode(db, now),
                qr_token=generate_qr_token(event_id, now),
                created_by=created_by,
                created_at=now,
                expires_at=expires_at,
                is_active=True,
                regenerate_on_checkin=regenerate_on_checkin,
            )
            db.add(session)
            db.commit()
            db.refresh(session)
        except Exception:
            db.rollback()
            raise

    logger.info(
        "checkin_session_started",
        event_id=event_id,
        session_id=session.id,
        created_by=created_by,
        expires_at=expires_at.isoformat(),
        replaced_sessions=replaced,
    )
    return session


def end_session(db: Session, event_id: int) -> bool:
    """
    End the event's session. Idempotent.

    Returns:
        True if an active session was ended, False if there was none
    """
    ended = deactivate_sessions(db, event_id)
    db.commit()

    logger.info("checkin_session_ended", event_id=event_id, ended_sessions=ended)
    return ended > 0


def rotate_credentials(
    db: Session,
    session: CheckInSession,
    now: Optional[datetime] = None
) -> CheckInSession:
    """Give a session a fresh passcode and QR token; old ones stop validating."""
    now = to_utc(now or utcnow())

    with _issue_lock:
        try:
            session.passcode = _unique_passcode(db, now)
            session.qr_token = generate_qr_token(session.event_id, now)
            db.commit()
            db.refresh(session)
        except Exception:
            db.rollback()
            raise

    logger.info("checkin_credentials_rotated", event_id=session.event_id, session_id=session.id)
    return session
