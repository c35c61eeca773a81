"""Database models."""
from clubcheckin.db.models.event import Event
from clubcheckin.db.models.membership import ClubMembership
from clubcheckin.db.models.checkin_session import CheckInSession
from clubcheckin.db.models.checkin import CheckIn

__all__ = ["Event", "ClubMembership", "CheckInSession", "CheckIn"]
