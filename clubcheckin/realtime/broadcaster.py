"""
Per-event subscriber groups over persistent connections.

A ``Broadcaster`` is owned by the application (``app.state.broadcaster``).

Each connection is represented by a ``Subscriber`` holding a bounded
``asyncio.Queue``. ``publish`` only enqueues and never waits on client
I/O; the connection's pump task drains the queue in order. A subscriber
whose queue is full is dropped: it is removed from every group and its
pump receives ``None`` so it can close the socket.
"""
import asyncio
import threading
from typing import Dict, Optional, Set

from pydantic import BaseModel

from clubcheckin.core.logging_config import get_logger
from clubcheckin.schemas.auth import CurrentUser

logger = get_logger(__name__)


class Subscriber:
    """One realtime connection and the events it follows."""

    def __init__(self, user: CurrentUser, queue_size: int):
        self.user = user
        self.event_ids: Set[int] = set()
        self.closed = False
        self._queue: "asyncio.Queue[Optional[dict]]" = asyncio.Queue(maxsize=queue_size)

    def deliver(self, frame: dict) -> bool:
        """Enqueue a frame without blocking. False if the queue is full or closed."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    async def next_frame(self) -> Optional[dict]:
        """Next frame to send, or None once the subscriber has been dropped."""
        return await self._queue.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Make room for the sentinel so the pump always wakes up
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)


class Broadcaster:
    """Fan-out of realtime messages to per-event subscriber groups."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._groups: Dict[int, Set[Subscriber]] = {}
        self._subscribers: Set[Subscriber] = set()
        self._lock = threading.Lock()

    def register(self, user: CurrentUser) -> Subscriber:
        subscriber = Subscriber(user, self.queue_size)
        with self._lock:
            self._subscribers.add(subscriber)
        return subscriber

    def unregister(self, subscriber: Subscriber) -> None:
        """Remove a subscriber from every group. Safe to call more than once."""
        with self._lock:
            self._subscribers.discard(subscriber)
            for event_id in subscriber.event_ids:
                self._discard(event_id, subscriber)
            subscriber.event_ids.clear()

    def join(self, subscriber: Subscriber, event_id: int) -> None:
        with self._lock:
            self._groups.setdefault(event_id, set()).add(subscriber)
            subscriber.event_ids.add(event_id)

    def leave(self, subscriber: Subscriber, event_id: int) -> None:
        with self._lock:
            self._discard(event_id, subscriber)
            subscriber.event_ids.discard(event_id)

    def publish(self, event_id: int, message: BaseModel) -> int:
        """
        Send a message to every subscriber of an event.

        Returns immediately; delivery happens on each connection's pump.
        Frames reach a given subscriber in the order ``publish`` was called.

        Returns:
            Number of subscribers the frame was queued for
        """
        frame = message.model_dump(mode="json")
        delivered = 0
        dropped = []

        with self._lock:
            for subscriber in list(self._groups.get(event_id, ())):
                if subscriber.deliver(frame):
                    delivered += 1
                else:
                    dropped.append(subscriber)

        for subscriber in dropped:
            self.drop(subscriber, reason="queue_full")

        return delivered

    def drop(self, subscriber: Subscriber, reason: str) -> None:
        """Disconnect a subscriber that can no longer keep up."""
        self.unregister(subscriber)
        subscriber.close()
        logger.warning(
            "realtime_subscriber_dropped",
            user_id=subscriber.user.user_id,
            reason=reason,
        )

    def group_size(self, event_id: int) -> int:
        with self._lock:
            return len(self._groups.get(event_id, ()))

    def stats(self) -> dict:
        with self._lock:
            return {
                "connections": len(self._subscribers),
                "groups": len(self._groups),
                "subscriptions": sum(len(group) for group in self._groups.values()),
            }

    def _discard(self, event_id: int, subscriber: Subscriber) -> None:
        group = self._groups.get(event_id)
        if group is None:
            return
        group.discard(subscriber)
        if not group:
            del self._groups[event_id]
