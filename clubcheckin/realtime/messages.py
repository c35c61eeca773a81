"""Realtime frames.

Server and client frames are closed unions of pydantic models
discriminated on ``type``; anything outside the union fails validation.
"""
from datetime import datetime
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter

from clubcheckin.core.utils import to_utc
from clubcheckin.db.models import CheckIn, CheckInSession


# Server -> client: event activity

class SessionStarted(BaseModel):
    type: Literal["session-started"] = "session-started"
    event_id: int
    passcode: str
    expires_at: datetime


class SessionEnded(BaseModel):
    type: Literal["session-ended"] = "session-ended"
    event_id: int


class SessionUpdated(BaseModel):
    """Credentials rotated after a check-in; the QR token is fetched separately."""
    type: Literal["session-updated"] = "session-updated"
    event_id: int
    passcode: str
    expires_at: datetime


class CheckInSuccess(BaseModel):
    type: Literal["check-in-success"] = "check-in-success"
    event_id: int
    user_id: int
    first_name: str
    last_name: str
    method: Literal["qr", "passcode"]
    check_in_time: datetime


ServerMessage = Annotated[
    Union[SessionStarted, SessionEnded, SessionUpdated, CheckInSuccess],
    Field(discriminator="type"),
]


# Server -> client: replies to a single connection

class Joined(BaseModel):
    type: Literal["joined"] = "joined"
    event_id: int


class Left(BaseModel):
    type: Literal["left"] = "left"
    event_id: int


class ErrorFrame(BaseModel):
    type: Literal["error"] = "error"
    detail: str


# Client -> server

class JoinEvent(BaseModel):
    type: Literal["join-event"]
    event_id: int = Field(..., gt=0)


class LeaveEvent(BaseModel):
    type: Literal["leave-event"]
    event_id: int = Field(..., gt=0)


ClientMessage = Annotated[Union[JoinEvent, LeaveEvent], Field(discriminator="type")]
client_message_adapter = TypeAdapter(ClientMessage)


def session_started(session: CheckInSession) -> SessionStarted:
    return SessionStarted(
        event_id=session.event_id,
        passcode=session.passcode,
        expires_at=to_utc(session.expires_at),
    )


def session_updated(session: CheckInSession) -> SessionUpdated:
    return SessionUpdated(
        event_id=session.event_id,
        passcode=session.passcode,
        expires_at=to_utc(session.expires_at),
    )


def check_in_success(record: CheckIn) -> CheckInSuccess:
    return CheckInSuccess(
        event_id=record.event_id,
        user_id=record.user_id,
        first_name=record.first_name,
        last_name=record.last_name,
        method=record.method,
        check_in_time=to_utc(record.check_in_time),
    )
