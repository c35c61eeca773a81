"""Domain errors for the check-in flow.

Services raise these; the API layer renders them through a single
exception handler (see ``clubcheckin.main``) as ``{"detail", "code"}``.
"""
from typing import Optional


class CheckInError(Exception):
    """Base class for check-in failures that callers are expected to handle."""

    status_code = 400
    code = "CHECKIN_ERROR"
    default_message = "Check-in request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthorized(CheckInError):
    status_code = 403
    code = "NOT_AUTHORIZED"
    default_message = "Leader or admin access required for this event"


class NotClubMember(NotAuthorized):
    code = "NOT_CLUB_MEMBER"
    default_message = "You must be a member of this club to check in"


class EventNotFound(CheckInError):
    status_code = 404
    code = "EVENT_NOT_FOUND"
    default_message = "Event not found"


class InvalidCredential(CheckInError):
    code = "INVALID_CREDENTIAL"
    default_message = "Invalid check-in code"


class ExpiredCredential(CheckInError):
    code = "EXPIRED_CREDENTIAL"
    default_message = "This check-in code has expired. Ask the event leader for a new one."


class AlreadyCheckedIn(CheckInError):
    status_code = 409
    code = "ALREADY_CHECKED_IN"
    default_message = "You have already checked in for this event"


class InvalidSessionWindow(CheckInError):
    code = "INVALID_SESSION_WINDOW"
    default_message = "The check-in window has already closed"
