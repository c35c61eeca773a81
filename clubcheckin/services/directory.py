"""Event and club membership lookups backing authorization decisions."""
from typing import Optional
from sqlalchemy.orm import Session

from clubcheckin.core.constants import MEMBERSHIP_APPROVED, ROLE_LEADER
from clubcheckin.core.exceptions import EventNotFound, NotAuthorized, NotClubMember
from clubcheckin.db.models import ClubMembership, Event
from clubcheckin.schemas.auth import CurrentUser


def get_event(db: Session, event_id: int) -> Event:
    """Raises EventNotFound if the event does not exist."""
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise EventNotFound()
    return event


def _approved_membership(db: Session, user_id: int, club_id: int) -> Optional[ClubMembership]:
    return db.query(ClubMembership).filter(
        ClubMembership.user_id == user_id,
        ClubMembership.club_id == club_id,
        ClubMembership.status == MEMBERSHIP_APPROVED
    ).first()


def can_manage_event(db: Session, user: CurrentUser, event: Event) -> bool:
    """Admins manage every event; leaders manage events of clubs they lead."""
    if user.is_admin:
        return True
    if not user.is_leader:
        return False
    membership = _approved_membership(db, user.user_id, event.club_id)
    return membership is not None and membership.role == ROLE_LEADER


def is_club_member(db: Session, user: CurrentUser, event: Event) -> bool:
    """Approved members of the event's club, whatever their club role."""
    return _approved_membership(db, user.user_id, event.club_id) is not None


def require_manager(db: Session, user: CurrentUser, event_id: int) -> Event:
    """
    Resolve an event the caller is allowed to run check-in for.

    Raises:
        EventNotFound: Unknown event
        NotAuthorized: Caller is neither admin nor a leader of the club
    """
    event = get_event(db, event_id)
    if not can_manage_event(db, user, event):
        raise NotAuthorized()
    return event


def require_club_member(db: Session, user: CurrentUser, event_id: int) -> Event:
    """
    Resolve an event the caller is allowed to check in to.

    Raises:
        EventNotFound: Unknown event
        NotClubMember: Caller has no approved membership in the club
    """
    event = get_event(db, event_id)
    if not is_club_member(db, user, event):
        raise NotClubMember()
    return event


def can_follow_event(db: Session, user: CurrentUser, event_id: int) -> bool:
    """Whether a realtime connection may join the event's subscriber group."""
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        return False
    return can_manage_event(db, user, event) or is_club_member(db, user, event)
