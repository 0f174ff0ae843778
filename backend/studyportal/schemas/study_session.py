from datetime import datetime
from enum import Enum as PyEnum

from pydantic import Field, field_validator, model_validator

from studyportal.core.clock import as_utc
from studyportal.schemas.common import CamelModel


class Subject(str, PyEnum):
    ARABIC = "arabic"
    ENGLISH = "english"
    MATH = "math"
    CHEMISTRY = "chemistry"
    PHYSICS = "physics"
    BIOLOGY = "biology"
    GEOLOGY = "geology"
    CONSTITUTION = "constitution"
    ISLAMIC = "islamic"


class SessionStatus(str, PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    POSTPONED = "postponed"


class Lesson(CamelModel):
    name: str
    completed: bool = False


class StudySessionBase(CamelModel):
    subject: Subject
    start_date: datetime
    end_date: datetime
    lessons: list[Lesson] = Field(default_factory=list)

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class StudySessionCreate(StudySessionBase):
    @model_validator(mode="after")
    def check_date_order(self) -> "StudySessionCreate":
        if self.start_date >= self.end_date:
            raise ValueError("startDate must be before endDate")
        return self


class StudySession(StudySessionBase):
    id: str
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class StudySessionGroups(CamelModel):
    active: list[StudySession]
    completed: list[StudySession]
    postponed: list[StudySession]


class SharedSession(StudySessionBase):
    pass


class SharePayload(CamelModel):
    sessions: list[SharedSession]
    created_at: datetime


class ShareLink(CamelModel):
    url: str
    token: str


class ImportRequest(CamelModel):
    token: str = Field(..., min_length=1)
