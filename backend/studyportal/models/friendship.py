from sqlalchemy import Column, DateTime, Integer, String

from studyportal.db.base import Base
from studyportal.core.clock import utcnow


class Friendship(Base):
    """One directed edge; a friendship is always stored as a pair."""

    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    friend_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
