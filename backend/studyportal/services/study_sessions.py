"""Study session engine.

Owns one schedule (an ordered list of study sessions) and applies the
lifecycle transitions:

* ``active -> completed`` once every lesson is ticked off,
* ``active -> postponed`` (plus a ``completed`` remainder) when the user
  postpones or the session runs past its end time,
* ``postponed`` sessions only shrink, handing completed lessons over to the
  subject's ``completed`` session.

The whole schedule is written back to its key-value store after every
mutation; that write is the engine's only I/O.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Iterable

from pydantic import TypeAdapter

from studyportal.core.clock import Clock, as_utc, utcnow
from studyportal.core.errors import ValidationError
from studyportal.db.kv_store import KeyValueStore
from studyportal.schemas.study_session import (
    Lesson,
    SessionStatus,
    SharePayload,
    StudySession,
    StudySessionBase,
    StudySessionGroups,
    Subject,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "studySessions"
REMINDER_LEAD = timedelta(minutes=5)
REMINDED_PREFIX = "reminded:"

Listener = Callable[[list[StudySession]], None]
ReminderHandler = Callable[[StudySession], None]

_sessions_adapter = TypeAdapter(list[StudySession])
_ids_adapter = TypeAdapter(list[str])


def storage_key(user_id: str | None = None) -> str:
    """Key a schedule is stored under; per-user on the server."""
    if user_id is None:
        return STORAGE_KEY
    return f"{STORAGE_KEY}_{user_id}"


def new_session_id() -> str:
    return uuid.uuid4().hex


def serialize_sessions(sessions: Iterable[StudySession]) -> str:
    return _sessions_adapter.dump_json(list(sessions), by_alias=True).decode("utf-8")


def deserialize_sessions(blob: str | bytes) -> list[StudySession]:
    return _sessions_adapter.validate_json(blob)


def split_lessons(lessons: Iterable[Lesson]) -> tuple[list[Lesson], list[Lesson]]:
    """Return (incomplete, completed) copies, preserving order."""
    incomplete: list[Lesson] = []
    completed: list[Lesson] = []
    for lesson in lessons:
        if lesson.completed:
            completed.append(lesson.model_copy())
        else:
            incomplete.append(Lesson(name=lesson.name, completed=False))
    return incomplete, completed


def log_reminder(session: StudySession) -> None:
    logger.info(
        f"Reminder: {session.subject.value} session {session.id} starts at "
        f"{session.start_date.isoformat()}"
    )


class StudySessionEngine:
    def __init__(
        self,
        store: KeyValueStore,
        key: str = STORAGE_KEY,
        clock: Clock = utcnow,
        on_reminder: ReminderHandler | None = None,
        reminder_lead: timedelta = REMINDER_LEAD,
    ) -> None:
        self.store = store
        self.key = key
        self.clock = clock
        self.on_reminder = on_reminder or log_reminder
        self.reminder_lead = reminder_lead
        self._listeners: list[Listener] = []
        self._sessions: list[StudySession] = self._load()
        self._reminded: set[str] = self._load_reminded()

    # -- persistence -------------------------------------------------------

    def _load(self) -> list[StudySession]:
        blob = self.store.get(self.key)
        if blob is None:
            return []
        try:
            return deserialize_sessions(blob)
        except ValueError as exc:
            logger.warning(f"Ignoring unreadable schedule stored under {self.key!r}: {exc}")
            return []

    @property
    def reminded_key(self) -> str:
        return f"{REMINDED_PREFIX}{self.key}"

    def _load_reminded(self) -> set[str]:
        blob = self.store.get(self.reminded_key)
        if blob is None:
            return set()
        try:
            return set(_ids_adapter.validate_json(blob))
        except ValueError as exc:
            logger.warning(f"Ignoring unreadable reminder marks under {self.reminded_key!r}: {exc}")
            return set()

    def _commit_reminded(self) -> None:
        active = {s.id for s in self._sessions if s.status == SessionStatus.ACTIVE}
        self._reminded &= active
        self.store.set(
            self.reminded_key,
            _ids_adapter.dump_json(sorted(self._reminded)).decode("utf-8"),
        )

    def _commit(self) -> None:
        self.store.set(self.key, serialize_sessions(self._sessions))
        if self._listeners:
            snapshot = self.sessions
            for listener in list(self._listeners):
                listener(snapshot)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the full schedule after every mutation.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- queries -----------------------------------------------------------

    @property
    def sessions(self) -> list[StudySession]:
        return [session.model_copy(deep=True) for session in self._sessions]

    def get(self, session_id: str) -> StudySession | None:
        index = self._index_of(session_id)
        if index is None:
            return None
        return self._sessions[index].model_copy(deep=True)

    def groups(self) -> StudySessionGroups:
        sessions = self.sessions
        return StudySessionGroups(
            active=sorted(
                (s for s in sessions if s.status == SessionStatus.ACTIVE),
                key=lambda s: s.start_date,
            ),
            completed=[s for s in sessions if s.status == SessionStatus.COMPLETED],
            postponed=[s for s in sessions if s.status == SessionStatus.POSTPONED],
        )

    def to_plain(self) -> list[dict]:
        """JSON-ready copy of the schedule for export and sharing."""
        return [session.model_dump(mode="json", by_alias=True) for session in self._sessions]

    def _index_of(self, session_id: str) -> int | None:
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                return index
        return None

    def _completed_for(self, subject: Subject) -> StudySession | None:
        for session in self._sessions:
            if session.subject == subject and session.status == SessionStatus.COMPLETED:
                return session
        return None

    # -- mutations ---------------------------------------------------------

    def add(self, data: StudySessionBase) -> StudySession:
        session = StudySession(
            id=new_session_id(),
            subject=data.subject,
            start_date=data.start_date,
            end_date=data.end_date,
            lessons=[lesson.model_copy() for lesson in data.lessons],
            status=SessionStatus.ACTIVE,
            created_at=self.clock(),
        )
        self._sessions.append(session)
        self._commit()
        return session.model_copy(deep=True)

    def update(self, session: StudySession) -> bool:
        index = self._index_of(session.id)
        if index is None:
            logger.debug(f"Update ignored, no session {session.id}")
            return False
        self._sessions[index] = session.model_copy(deep=True)
        self._commit()
        return True

    def delete(self, session_id: str) -> bool:
        index = self._index_of(session_id)
        if index is None:
            return False
        del self._sessions[index]
        self._commit()
        return True

    def import_shared(self, payload: SharePayload) -> list[StudySession]:
        """Append every shared session as a fresh active session."""
        now = self.clock()
        imported = [
            StudySession(
                id=new_session_id(),
                subject=shared.subject,
                start_date=shared.start_date,
                end_date=shared.end_date,
                lessons=[lesson.model_copy() for lesson in shared.lessons],
                status=SessionStatus.ACTIVE,
                created_at=now,
            )
            for shared in payload.sessions
        ]
        if imported:
            self._sessions.extend(imported)
            self._commit()
        return [session.model_copy(deep=True) for session in imported]

    def toggle_lesson_completed(self, session_id: str, lesson_index: int) -> bool:
        index = self._index_of(session_id)
        if index is None:
            return False
        session = self._sessions[index]
        if not 0 <= lesson_index < len(session.lessons):
            raise ValidationError(
                f"Session {session_id} has no lesson at index {lesson_index}"
            )

        if session.status == SessionStatus.COMPLETED:
            return False

        if session.status == SessionStatus.POSTPONED:
            if session.lessons[lesson_index].completed:
                return False
            self._move_to_completed(index, lesson_index)
            self._commit()
            return True

        lesson = session.lessons[lesson_index]
        lesson.completed = not lesson.completed
        if all(item.completed for item in session.lessons):
            session.status = SessionStatus.COMPLETED
            logger.info(f"Session {session.id} ({session.subject.value}) completed")
        self._commit()
        return True

    def auto_transfer(self, session_id: str) -> bool:
        """Split an active session into postponed and completed remainders."""
        index = self._index_of(session_id)
        if index is None or self._sessions[index].status != SessionStatus.ACTIVE:
            return False
        self._fork(index)
        self._commit()
        return True

    def postpone(self, session_id: str) -> bool:
        index = self._index_of(session_id)
        if index is None:
            return False
        session = self._sessions[index]
        if session.status != SessionStatus.ACTIVE:
            raise ValidationError("Only active sessions can be postponed")
        if all(item.completed for item in session.lessons):
            raise ValidationError("Session has no incomplete lessons to postpone")
        self._fork(index)
        self._commit()
        return True

    def tick(self, now: datetime | None = None) -> list[str]:
        """Evaluate the schedule at ``now``.

        Fires the reminder once for every active session that starts within
        the reminder lead, however far apart ticks land, and auto-transfers
        every active session past its end. Returns the ids of the
        transferred sessions.
        """
        now = as_utc(now or self.clock())

        reminded = False
        due: list[str] = []
        for session in self._sessions:
            if session.status != SessionStatus.ACTIVE:
                continue
            if (
                session.id not in self._reminded
                and now < session.start_date <= now + self.reminder_lead
            ):
                self.on_reminder(session.model_copy(deep=True))
                self._reminded.add(session.id)
                reminded = True
            if now >= session.end_date:
                due.append(session.id)

        for session_id in due:
            logger.info(f"Session {session_id} ended, transferring lessons")
            self._fork(self._index_of(session_id))
        if due:
            self._commit()
        if reminded or due:
            self._commit_reminded()
        return due

    # -- forks -------------------------------------------------------------

    def _fork(self, index: int) -> None:
        session = self._sessions.pop(index)
        incomplete, completed = split_lessons(session.lessons)
        now = self.clock()

        if incomplete:
            self._sessions.append(
                session.model_copy(
                    update={
                        "id": new_session_id(),
                        "lessons": incomplete,
                        "status": SessionStatus.POSTPONED,
                        "created_at": now,
                    }
                )
            )

        if completed:
            target = self._completed_for(session.subject)
            if target is not None:
                target.lessons.extend(completed)
            else:
                self._sessions.append(
                    session.model_copy(
                        update={
                            "id": new_session_id(),
                            "lessons": completed,
                            "status": SessionStatus.COMPLETED,
                            "created_at": now,
                        }
                    )
                )

    def _move_to_completed(self, index: int, lesson_index: int) -> None:
        postponed = self._sessions[index]
        lesson = postponed.lessons.pop(lesson_index)
        lesson.completed = True

        target = self._completed_for(postponed.subject)
        if target is not None:
            target.lessons.append(lesson)
        else:
            self._sessions.append(
                StudySession(
                    id=new_session_id(),
                    subject=postponed.subject,
                    start_date=postponed.start_date,
                    end_date=postponed.end_date,
                    lessons=[lesson],
                    status=SessionStatus.COMPLETED,
                    created_at=self.clock(),
                )
            )

        # Appending above never shifts ``index``.
        if not postponed.lessons:
            del self._sessions[index]
        logger.info(
            f"Moved lesson {lesson.name!r} from postponed session {postponed.id} "
            f"to completed {postponed.subject.value}"
        )
