from sqlalchemy import Column, DateTime, String, Text

from studyportal.db.base import Base
from studyportal.core.clock import utcnow


class KeyValueEntry(Base):
    __tablename__ = "key_value_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
