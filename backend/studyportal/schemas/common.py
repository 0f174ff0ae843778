from datetime import datetime

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from studyportal.core.clock import as_utc


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class TimestampedModel(CamelModel):
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)
