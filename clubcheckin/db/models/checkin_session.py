"""CheckInSession model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from clubcheckin.db.base import Base


class CheckInSession(Base):
    __tablename__ = "check_in_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    passcode = Column(String(6), nullable=False)
    qr_token = Column(String(200), unique=True, nullable=False)
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    regenerate_on_checkin = Column(Boolean, nullable=False, default=False)

    # Relationships
    event = relationship("Event", back_populates="sessions")

    __table_args__ = (
        Index("idx_sessions_event_active", "event_id", "is_active"),
        Index("idx_sessions_passcode_active", "passcode", "is_active"),
    )
