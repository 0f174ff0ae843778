from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from studyportal.core.clock import utcnow
from studyportal.db.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("user_id", name="uq_users_user_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
