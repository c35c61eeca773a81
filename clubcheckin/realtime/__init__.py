"""Realtime fan-out of check-in activity to per-event subscriber groups."""
from clubcheckin.realtime.broadcaster import Broadcaster, Subscriber
from clubcheckin.realtime.messages import (
    CheckInSuccess,
    ServerMessage,
    SessionEnded,
    SessionStarted,
    SessionUpdated,
)

__all__ = [
    "Broadcaster",
    "Subscriber",
    "CheckInSuccess",
    "ServerMessage",
    "SessionEnded",
    "SessionStarted",
    "SessionUpdated",
]
