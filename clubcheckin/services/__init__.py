from .checkin import check_in_with_passcode, check_in_with_qr
from .credentials import resolve_by_passcode, resolve_by_qr_token
from .directory import (
    can_follow_event,
    can_manage_event,
    get_event,
    is_club_member,
    require_club_member,
    require_manager,
)
from .ledger import has_checked_in, list_checked_in, record_checkin
from .lifecycle import end_session, rotate_credentials, start_session
from .qr import generate_qr_code
from .session_store import get_active_session, is_live

__all__ = [
    # check-in
    "check_in_with_passcode",
    "check_in_with_qr",
    # credentials
    "resolve_by_passcode",
    "resolve_by_qr_token",
    # directory
    "can_follow_event",
    "can_manage_event",
    "get_event",
    "is_club_member",
    "require_club_member",
    "require_manager",
    # ledger
    "has_checked_in",
    "list_checked_in",
    "record_checkin",
    # lifecycle
    "end_session",
    "rotate_credentials",
    "start_session",
    # session store
    "get_active_session",
    "is_live",
    # utils
    "generate_qr_code",
]
