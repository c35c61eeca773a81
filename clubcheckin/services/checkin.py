"""Check-in business logic: credential -> eligibility -> ledger -> rotation."""
from datetime import datetime
from typing import Callable, Optional, Tuple
from sqlalchemy.orm import Session

from clubcheckin.core.constants import METHOD_PASSCODE, METHOD_QR
from clubcheckin.core.exceptions import InvalidCredential
from clubcheckin.core.logging_config import get_logger
from clubcheckin.core.utils import to_utc, utcnow
from clubcheckin.db.models import CheckIn, CheckInSession
from clubcheckin.schemas.auth import CurrentUser
from clubcheckin.services.credentials import resolve_by_passcode, resolve_by_qr_token
from clubcheckin.services.directory import require_club_member
from clubcheckin.services.ledger import record_checkin
from clubcheckin.services.lifecycle import rotate_credentials

logger = get_logger(__name__)


def _check_in(
    db: Session,
    user: CurrentUser,
    resolve: Callable[[], CheckInSession],
    method: str,
    event_id: Optional[int],
    now: datetime,
) -> Tuple[CheckIn, Optional[CheckInSession]]:
    session = resolve()

    if event_id is not None and session.event_id != event_id:
        logger.info(
            "checkin_rejected",
            reason="event_mismatch",
            requested_event_id=event_id,
            user_id=user.user_id,
            method=method,
        )
        raise InvalidCredential("This code is not valid for this event")

    require_club_member(db, user, session.event_id)

    record = record_checkin(
        db, session.event_id, user, method, session_id=session.id, now=now
    )

    rotated = None
    if session.regenerate_on_checkin:
        # The check-in is committed; a failed rotation rolls back and must
        # not expire the record we still report
        db.expunge(record)
        try:
            rotated = rotate_credentials(db, session, now)
        except Exception:
            logger.exception(
                "checkin_rotation_failed",
                event_id=record.event_id,
                session_id=record.session_id,
                user_id=user.user_id,
            )

    return record, rotated


def check_in_with_passcode(
    db: Session,
    user: CurrentUser,
    passcode: str,
    event_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> Tuple[CheckIn, Optional[CheckInSession]]:
    """
    Check a member in with a 6-digit passcode.

    Args:
        db: Database session
        user: Authenticated caller
        passcode: Sanitized 6-digit passcode
        event_id: Optional event the member believes they are checking in to
        now: Attempt instant, defaults to the current time

    Returns:
        (record, rotated_session) where rotated_session is the session with
        fresh credentials if it rotates on check-in, else None

    Raises:
        InvalidCredential, ExpiredCredential, EventNotFound, NotClubMember,
        AlreadyCheckedIn
    """
    now = to_utc(now or utcnow())
    return _check_in(
        db, user, lambda: resolve_by_passcode(db, passcode, now),
        METHOD_PASSCODE, event_id, now,
    )


def check_in_with_qr(
    db: Session,
    user: CurrentUser,
    qr_token: str,
    event_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> Tuple[CheckIn, Optional[CheckInSession]]:
    """Check a member in with a scanned QR token. See check_in_with_passcode."""
    now = to_utc(now or utcnow())
    return _check_in(
        db, user, lambda: resolve_by_qr_token(db, qr_token, now),
        METHOD_QR, event_id, now,
    )
