import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from studyportal.core.errors import ValidationError
from studyportal.schemas.study_session import Lesson, SessionStatus, StudySession, Subject
from studyportal.services.schedule_share import (
    build_share_payload,
    decode_schedule,
    encode_schedule,
    share_url,
)

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _session(status=SessionStatus.ACTIVE, start=T0, subject=Subject.ARABIC) -> StudySession:
    return StudySession(
        id=f"{subject.value}-{start.isoformat()}",
        subject=subject,
        start_date=start,
        end_date=start + timedelta(hours=1),
        lessons=[Lesson(name="النحو", completed=True), Lesson(name="Poetry")],
        status=status,
        created_at=T0,
    )


def test_payload_keeps_only_active_sessions_with_reset_lessons():
    payload = build_share_payload(
        [
            _session(start=T0 + timedelta(days=1), subject=Subject.MATH),
            _session(status=SessionStatus.POSTPONED),
            _session(),
        ],
        now=T0,
    )

    assert [s.subject for s in payload.sessions] == [Subject.ARABIC, Subject.MATH]
    assert all(not lesson.completed for s in payload.sessions for lesson in s.lessons)
    assert payload.created_at == T0


def test_payload_requires_an_active_session():
    with pytest.raises(ValidationError):
        build_share_payload([_session(status=SessionStatus.COMPLETED)])


def test_token_is_base64_of_camel_case_json():
    token = encode_schedule(build_share_payload([_session()], now=T0))

    decoded = json.loads(base64.b64decode(token).decode("utf-8"))
    assert set(decoded) == {"sessions", "createdAt"}
    assert decoded["sessions"][0]["lessons"][0] == {"name": "النحو", "completed": False}
    assert "startDate" in decoded["sessions"][0]


def test_decode_recovers_payload():
    payload = build_share_payload([_session()], now=T0)
    assert decode_schedule(encode_schedule(payload)) == payload


def test_decode_rejects_malformed_tokens():
    with pytest.raises(ValidationError):
        decode_schedule("not base64!")
    with pytest.raises(ValidationError):
        decode_schedule(base64.b64encode(b'{"sessions": 3}').decode())


def test_share_url_quotes_token():
    assert share_url("https://portal.example/", "a+b/c=") == (
        "https://portal.example/study-schedule?import=a%2Bb%2Fc%3D"
    )
