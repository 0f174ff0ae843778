"""Server-side schedules, one engine per user backed by the key-value table."""
from datetime import timedelta

from sqlalchemy.orm import Session

from studyportal.core.config import Settings, get_settings
from studyportal.db.kv_store import KeyValueStore, SqlKeyValueStore
from studyportal.services.study_sessions import (
    ReminderHandler,
    StudySessionEngine,
    storage_key,
)


def build_engine(
    store: KeyValueStore,
    key: str,
    settings: Settings | None = None,
    on_reminder: ReminderHandler | None = None,
) -> StudySessionEngine:
    settings = settings or get_settings()
    return StudySessionEngine(
        store,
        key=key,
        on_reminder=on_reminder,
        reminder_lead=timedelta(minutes=settings.reminder_lead_minutes),
    )


def open_schedule(db: Session, user_id: str, settings: Settings | None = None) -> StudySessionEngine:
    return build_engine(SqlKeyValueStore(db), storage_key(user_id), settings)
