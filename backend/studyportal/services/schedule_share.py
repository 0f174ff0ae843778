"""Share links for study schedules.

A share token is the base64 of the UTF-8 JSON payload
``{"sessions": [...], "createdAt": ...}``; it travels as the ``import``
query parameter of the schedule page.
"""
import base64
import binascii
from datetime import datetime
from typing import Iterable
from urllib.parse import quote

from studyportal.core.clock import utcnow
from studyportal.core.errors import ValidationError
from studyportal.schemas.study_session import (
    Lesson,
    SessionStatus,
    SharePayload,
    SharedSession,
    StudySession,
)

SHARE_PATH = "/study-schedule"


def build_share_payload(
    sessions: Iterable[StudySession], now: datetime | None = None
) -> SharePayload:
    active = sorted(
        (s for s in sessions if s.status == SessionStatus.ACTIVE),
        key=lambda s: s.start_date,
    )
    if not active:
        raise ValidationError("No active sessions to share")
    return SharePayload(
        sessions=[
            SharedSession(
                subject=s.subject,
                start_date=s.start_date,
                end_date=s.end_date,
                lessons=[Lesson(name=lesson.name, completed=False) for lesson in s.lessons],
            )
            for s in active
        ],
        created_at=now or utcnow(),
    )


def encode_schedule(payload: SharePayload) -> str:
    raw = payload.model_dump_json(by_alias=True).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_schedule(token: str) -> SharePayload:
    try:
        raw = base64.b64decode(token.strip(), validate=True)
        return SharePayload.model_validate_json(raw)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Invalid share link") from exc


def share_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{SHARE_PATH}?import={quote(token, safe='')}"
