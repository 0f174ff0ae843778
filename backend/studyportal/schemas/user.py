from pydantic import Field

from studyportal.schemas.common import CamelModel, TimestampedModel


class UserCreate(CamelModel):
    user_id: str | None = Field(default=None, min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)


class UserPublic(TimestampedModel):
    id: int
    user_id: str
    name: str
