"""ClubMembership model."""
from sqlalchemy import Column, Integer, String, Index, UniqueConstraint

from clubcheckin.db.base import Base


class ClubMembership(Base):
    __tablename__ = "club_memberships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False)
    club_id = Column(Integer, nullable=False)
    role = Column(String(20), nullable=False, default="member")  # member | leader
    status = Column(String(20), nullable=False, default="pending")  # pending | approved

    __table_args__ = (
        Index("idx_memberships_club", "club_id"),
        UniqueConstraint("user_id", "club_id", name="uq_membership_user_club"),
    )
