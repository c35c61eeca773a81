"""Check-in endpoints: session management for leaders, check-in for members."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from clubcheckin.api.deps import get_broadcaster, get_current_user, get_db
from clubcheckin.core.exceptions import CheckInError
from clubcheckin.core.logging_config import get_logger
from clubcheckin.core.rate_limit import limiter, RATE_LIMITS
from clubcheckin.core.utils import to_utc
from clubcheckin.realtime import messages
from clubcheckin.realtime.broadcaster import Broadcaster
from clubcheckin.schemas import (
    CheckedInMember,
    CurrentUser,
    PasscodeCheckinRequest,
    QrCheckinRequest,
    SessionInfo,
    SessionStartRequest,
    SessionStartResponse,
    SuccessResponse,
)
from clubcheckin.services import (
    check_in_with_passcode,
    check_in_with_qr,
    end_session,
    generate_qr_code,
    get_active_session,
    list_checked_in,
    require_manager,
    start_session,
)

logger = get_logger(__name__)
router = APIRouter()


@router.post("/session/{event_id}", response_model=SessionStartResponse)
@limiter.limit(RATE_LIMITS["session_start"])
async def start_session_endpoint(
    request: Request,
    event_id: int,
    body: Optional[SessionStartRequest] = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """
    Start a check-in session for an event (event leaders and admins).

    Any session already running for the event is ended first, so its
    passcode and QR token stop validating immediately. The body is
    optional; without it the session opens now and lasts the configured
    default lifetime.

    Args:
        request: FastAPI Request (for rate limiting)
        event_id: Event to open check-in for
        body: Optional start_time / expire_time (HH:MM, configured
              timezone) and regenerate_on_checkin flag
        user: Authenticated caller (injected)
        db: Database session (injected)
        broadcaster: Realtime broadcaster (injected)

    Returns:
        SessionStartResponse with the passcode, QR token and expiry

    Raises:
        401 if not authenticated, 403 if the caller does not lead the
        event's club, 404 for an unknown event, 400 if the requested
        window has already closed

    Rate Limit:
        5 requests per minute per caller per event

    Example:
        Request:
            POST /api/v1/checkin/session/42
            {"start_time": "23:50", "expire_time": "00:10"}

        Response (200):
            {
                "passcode": "048213",
                "qr_token": "ci1.42.Vn0x....1730400000.9f2c...",
                "expires_at": "2025-11-01T00:10:00Z",
                "regenerate_on_checkin": false
            }

    Realtime:
        Emits session-started to the event's subscriber group.
    """
    body = body or SessionStartRequest()
    require_manager(db, user, event_id)

    session = start_session(
        db,
        event_id,
        user.user_id,
        start_time=body.start_time,
        expire_time=body.expire_time,
        regenerate_on_checkin=body.regenerate_on_checkin,
    )

    broadcaster.publish(event_id, messages.session_started(session))

    return SessionStartResponse(
        passcode=session.passcode,
        qr_token=session.qr_token,
        expires_at=to_utc(session.expires_at),
        regenerate_on_checkin=session.regenerate_on_checkin,
    )


@router.delete("/session/{event_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["session_end"])
async def end_session_endpoint(
    request: Request,
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """
    End the event's check-in session (idempotent).

    Ending an event with no running session succeeds as well. In both
    cases session-ended is emitted so every display converges on
    "closed".
    """
    require_manager(db, user, event_id)

    ended = end_session(db, event_id)
    broadcaster.publish(event_id, messages.SessionEnded(event_id=event_id))

    message = "Check-in session ended" if ended else "No active check-in session"
    return SuccessResponse(message=message)


@router.get("/session/{event_id}", response_model=Optional[SessionInfo])
@limiter.limit(RATE_LIMITS["session_read"])
async def session_info_endpoint(
    request: Request,
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Current session for an event, or null when none is live.

    An expired session is reported as null even before anyone ends it.
    Leaders poll this to reconcile after a realtime disconnect and to
    pick up a rotated QR token.
    """
    require_manager(db, user, event_id)

    session = get_active_session(db, event_id)
    if session is None:
        return None

    return SessionInfo(
        passcode=session.passcode,
        qr_token=session.qr_token,
        expires_at=to_utc(session.expires_at),
        is_active=session.is_active,
        regenerate_on_checkin=session.regenerate_on_checkin,
    )


@router.get("/session/{event_id}/qr.svg")
@limiter.limit(RATE_LIMITS["session_read"])
async def session_qr_endpoint(
    request: Request,
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Render the live session's QR token as an SVG image for display."""
    require_manager(db, user, event_id)

    session = get_active_session(db, event_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No active check-in session")

    buffer = generate_qr_code(session.qr_token)
    return Response(
        content=buffer.getvalue(),
        media_type="image/svg+xml",
        headers={"Cache-Control": "no-store"},
    )


@router.get("/{event_id}/members", response_model=List[CheckedInMember])
@limiter.limit(RATE_LIMITS["session_read"])
async def checked_in_members_endpoint(
    request: Request,
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Members checked in to the event, most recent first."""
    require_manager(db, user, event_id)

    return [
        CheckedInMember(
            user_id=record.user_id,
            first_name=record.first_name,
            last_name=record.last_name,
            check_in_time=to_utc(record.check_in_time),
            method=record.method,
        )
        for record in list_checked_in(db, event_id)
    ]


def _announce_checkin(broadcaster: Broadcaster, record, rotated) -> None:
    broadcaster.publish(record.event_id, messages.check_in_success(record))
    if rotated is not None:
        broadcaster.publish(rotated.event_id, messages.session_updated(rotated))


@router.post("/qr", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["qr_checkin"])
async def qr_checkin_endpoint(
    request: Request,
    checkin_request: QrCheckinRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """
    Check in by scanning the leader's QR code.

    The event is resolved from the token; an event_id in the body only
    guards against scanning another event's code.

    Args:
        request: FastAPI Request (for rate limiting)
        checkin_request: QrCheckinRequest with qr_token and optional event_id
        user: Authenticated caller (injected)
        db: Database session (injected)
        broadcaster: Realtime broadcaster (injected)

    Returns:
        SuccessResponse once the check-in is committed

    Raises:
        400 INVALID_CREDENTIAL / EXPIRED_CREDENTIAL, 403 NOT_CLUB_MEMBER,
        409 ALREADY_CHECKED_IN

    Rate Limit:
        10 requests per minute per caller
    """
    try:
        record, rotated = check_in_with_qr(
            db, user, checkin_request.qr_token, event_id=checkin_request.event_id
        )
    except CheckInError as e:
        logger.info("checkin_rejected", method="qr", code=e.code, user_id=user.user_id)
        raise

    _announce_checkin(broadcaster, record, rotated)
    return SuccessResponse(message="Check-in successful")


@router.post("/passcode", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["passcode_checkin"])
async def passcode_checkin_endpoint(
    request: Request,
    checkin_request: PasscodeCheckinRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """
    Check in with the 6-digit passcode shown by the leader.

    Rate Limit:
        5 requests per minute per caller. Every attempt counts, so a
        guessing loop is cut off after a handful of tries.
    """
    try:
        record, rotated = check_in_with_passcode(
            db, user, checkin_request.passcode, event_id=checkin_request.event_id
        )
    except CheckInError as e:
        logger.info("checkin_rejected", method="passcode", code=e.code, user_id=user.user_id)
        raise

    _announce_checkin(broadcaster, record, rotated)
    return SuccessResponse(message="Check-in successful")
