from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studyportal.api.errors import http_error
from studyportal.core.config import get_settings
from studyportal.core.errors import ValidationError
from studyportal.db.session import db_lock, get_db
from studyportal.schemas.study_session import (
    ImportRequest,
    ShareLink,
    StudySession,
    StudySessionCreate,
    StudySessionGroups,
)
from studyportal.services.schedule_share import (
    build_share_payload,
    decode_schedule,
    encode_schedule,
    share_url,
)
from studyportal.services.schedules import open_schedule

router = APIRouter()


@router.get("/{user_id}", response_model=StudySessionGroups)
def list_sessions(user_id: str, db: Session = Depends(get_db)) -> StudySessionGroups:
    with db_lock:
        return open_schedule(db, user_id).groups()


@router.post("/{user_id}", response_model=StudySession, status_code=status.HTTP_201_CREATED)
def add_session(
    user_id: str,
    payload: StudySessionCreate,
    db: Session = Depends(get_db),
) -> StudySession:
    with db_lock:
        return open_schedule(db, user_id).add(payload)


@router.put("/{user_id}/{session_id}", response_model=StudySessionGroups)
def update_session(
    user_id: str,
    session_id: str,
    payload: StudySession,
    db: Session = Depends(get_db),
) -> StudySessionGroups:
    if payload.id != session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Session id does not match path"
        )
    if payload.start_date >= payload.end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="startDate must be before endDate"
        )
    with db_lock:
        engine = open_schedule(db, user_id)
        engine.update(payload)
        return engine.groups()


@router.delete("/{user_id}/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(user_id: str, session_id: str, db: Session = Depends(get_db)) -> None:
    with db_lock:
        open_schedule(db, user_id).delete(session_id)


@router.post(
    "/{user_id}/{session_id}/lessons/{lesson_index}/toggle",
    response_model=StudySessionGroups,
)
def toggle_lesson(
    user_id: str,
    session_id: str,
    lesson_index: int,
    db: Session = Depends(get_db),
) -> StudySessionGroups:
    with db_lock:
        engine = open_schedule(db, user_id)
        try:
            engine.toggle_lesson_completed(session_id, lesson_index)
        except ValidationError as exc:
            raise http_error(exc) from exc
        return engine.groups()


@router.post("/{user_id}/{session_id}/postpone", response_model=StudySessionGroups)
def postpone_session(
    user_id: str,
    session_id: str,
    db: Session = Depends(get_db),
) -> StudySessionGroups:
    with db_lock:
        engine = open_schedule(db, user_id)
        try:
            engine.postpone(session_id)
        except ValidationError as exc:
            raise http_error(exc) from exc
        return engine.groups()


@router.post("/{user_id}/tick", response_model=StudySessionGroups)
def tick_schedule(user_id: str, db: Session = Depends(get_db)) -> StudySessionGroups:
    """Evaluate the schedule now, for clients that poll instead of relying on the ticker."""
    with db_lock:
        engine = open_schedule(db, user_id)
        engine.tick()
        return engine.groups()


@router.get("/{user_id}/share", response_model=ShareLink)
def share_schedule(user_id: str, db: Session = Depends(get_db)) -> ShareLink:
    with db_lock:
        sessions = open_schedule(db, user_id).sessions
    try:
        token = encode_schedule(build_share_payload(sessions))
    except ValidationError as exc:
        raise http_error(exc) from exc
    return ShareLink(url=share_url(get_settings().frontend_url, token), token=token)


@router.post("/{user_id}/import", response_model=StudySessionGroups)
def import_schedule(
    user_id: str,
    payload: ImportRequest,
    db: Session = Depends(get_db),
) -> StudySessionGroups:
    try:
        shared = decode_schedule(payload.token)
    except ValidationError as exc:
        raise http_error(exc) from exc
    with db_lock:
        engine = open_schedule(db, user_id)
        engine.import_shared(shared)
        return engine.groups()
