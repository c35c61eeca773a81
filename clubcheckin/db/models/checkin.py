"""CheckIn model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from clubcheckin.db.base import Base


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=False)
    session_id = Column(Integer, ForeignKey("check_in_sessions.id", ondelete="SET NULL"), nullable=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    method = Column(String(16), nullable=False)  # qr | passcode
    check_in_time = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    event = relationship("Event", back_populates="checkins")

    __table_args__ = (
        Index("idx_checkins_event_time", "event_id", "check_in_time"),
        UniqueConstraint("event_id", "user_id", name="uq_checkin_event_user"),
    )
