from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum as SQLEnum, Integer, String

from studyportal.db.base import Base
from studyportal.core.clock import utcnow


class FriendRequestStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(Integer, primary_key=True, index=True)
    # Plain user ids: a request may name a user that was never registered.
    sender_id = Column(String(128), nullable=False, index=True)
    receiver_id = Column(String(128), nullable=False, index=True)
    status = Column(
        SQLEnum(FriendRequestStatus),
        nullable=False,
        default=FriendRequestStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
