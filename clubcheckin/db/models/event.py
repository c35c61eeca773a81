"""Event model."""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from clubcheckin.db.base import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    club_id = Column(Integer, nullable=False, index=True)
    title = Column(String(200), nullable=False)

    # Relationships
    sessions = relationship("CheckInSession", back_populates="event", cascade="all, delete-orphan")
    checkins = relationship("CheckIn", back_populates="event", cascade="all, delete-orphan")
