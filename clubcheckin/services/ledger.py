"""Check-in ledger: the authoritative record of who checked in to an event.

The ledger is cumulative per event. Starting a new session does not clear
it, so a member who checked in under an earlier session stays checked in.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from clubcheckin.core.exceptions import AlreadyCheckedIn
from clubcheckin.core.logging_config import get_logger
from clubcheckin.core.utils import to_utc, utcnow
from clubcheckin.db.models import CheckIn
from clubcheckin.schemas.auth import CurrentUser

logger = get_logger(__name__)


def has_checked_in(db: Session, event_id: int, user_id: int) -> bool:
    return db.query(CheckIn.id).filter(
        CheckIn.event_id == event_id,
        CheckIn.user_id == user_id
    ).first() is not None


def record_checkin(
    db: Session,
    event_id: int,
    user: CurrentUser,
    method: str,
    session_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> CheckIn:
    """
    Record a user's check-in for an event, at most once.

    The (event_id, user_id) unique constraint makes the insert itself the
    atomic check: of two concurrent attempts exactly one commits and the
    other gets an IntegrityError, reported as AlreadyCheckedIn.

    Returns:
        The committed CheckIn record

    Raises:
        AlreadyCheckedIn: The user already has a record for this event
    """
    if has_checked_in(db, event_id, user.user_id):
        raise AlreadyCheckedIn()

    record = CheckIn(
        event_id=event_id,
        user_id=user.user_id,
        session_id=session_id,
        first_name=user.first_name,
        last_name=user.last_name,
        method=method,
        check_in_time=to_utc(now or utcnow()),
    )

    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except IntegrityError:
        db.rollback()
        logger.info("checkin_duplicate_rejected", event_id=event_id, user_id=user.user_id)
        raise AlreadyCheckedIn()

    logger.info("checkin_recorded", event_id=event_id, user_id=user.user_id, method=method)
    return record


def list_checked_in(db: Session, event_id: int) -> List[CheckIn]:
    """All check-ins for an event, most recent first."""
    return db.query(CheckIn).filter(
        CheckIn.event_id == event_id
    ).order_by(CheckIn.check_in_time.desc(), CheckIn.id.desc()).all()
