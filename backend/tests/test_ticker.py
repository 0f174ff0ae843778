import threading
from datetime import datetime, timedelta, timezone

from studyportal.core.config import Settings
from studyportal.db.kv_store import SqlKeyValueStore
from studyportal.db.session import db_lock
from studyportal.schemas.study_session import Lesson, SessionStatus, StudySessionCreate, Subject
from studyportal.services.schedules import build_engine, open_schedule
from studyportal.services.study_sessions import storage_key
from studyportal.services.ticker import TICK_JOB_ID, ScheduleTicker

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _data(start: datetime) -> StudySessionCreate:
    return StudySessionCreate(
        subject=Subject.CHEMISTRY,
        start_date=start,
        end_date=start + timedelta(hours=1),
        lessons=[Lesson(name="Acids")],
    )


def test_tick_all_transfers_every_users_expired_sessions(session_factory):
    with session_factory() as db:
        first = open_schedule(db, "u1").add(_data(T0))
        second = open_schedule(db, "u2").add(_data(T0))
        open_schedule(db, "u3").add(_data(T0 + timedelta(days=1)))

    ticker = ScheduleTicker(session_factory, Settings(schedule_ticker_enabled=False))
    transferred = ticker.tick_all(T0 + timedelta(hours=2))

    assert transferred == {
        storage_key("u1"): [first.id],
        storage_key("u2"): [second.id],
    }
    with session_factory() as db:
        for user_id in ("u1", "u2"):
            groups = open_schedule(db, user_id).groups()
            assert groups.active == []
            assert groups.postponed[0].status == SessionStatus.POSTPONED
        assert len(open_schedule(db, "u3").groups().active) == 1


def test_engine_honours_configured_reminder_lead(session_factory):
    reminders = []
    settings = Settings(reminder_lead_minutes=10)
    with session_factory() as db:
        engine = build_engine(
            SqlKeyValueStore(db), storage_key("u1"), settings, on_reminder=reminders.append
        )
        session = engine.add(_data(T0))

        engine.tick(T0 - timedelta(minutes=11))
        assert reminders == []
        engine.tick(T0 - timedelta(minutes=10))
        engine.tick(T0 - timedelta(minutes=5))

    assert [s.id for s in reminders] == [session.id]


def test_sql_store_lists_keys_by_prefix(db_session):
    store = SqlKeyValueStore(db_session)
    store.set("studySessions_a", "[]")
    store.set("studySessions_b", "[]")
    store.set("studySessionsXc", "[]")
    store.set("other", "[]")

    assert store.keys("studySessions_") == ["studySessions_a", "studySessions_b"]
    store.set("studySessions_a", "[1]")
    assert store.get("studySessions_a") == "[1]"
    assert store.get("missing") is None


def test_start_schedules_one_fixed_rate_job_and_stop_shuts_down(session_factory):
    ticker = ScheduleTicker(session_factory, Settings(tick_interval_seconds=3600))
    ticker.start()
    try:
        ticker.start()
        jobs = ticker.scheduler.get_jobs()
        assert [job.id for job in jobs] == [TICK_JOB_ID]
        assert jobs[0].trigger.interval == timedelta(hours=1)
        assert jobs[0].max_instances == 1
        assert jobs[0].coalesce is True
        assert ticker.scheduler.running
    finally:
        ticker.stop()

    assert not ticker.scheduler.running


def test_tick_all_waits_for_request_handlers_holding_the_database_lock(session_factory):
    with session_factory() as db:
        session = open_schedule(db, "u1").add(_data(T0))
    ticker = ScheduleTicker(session_factory, Settings(schedule_ticker_enabled=False))
    results = []

    worker = threading.Thread(
        target=lambda: results.append(ticker.tick_all(T0 + timedelta(hours=2)))
    )
    with db_lock:
        worker.start()
        worker.join(timeout=0.2)
        assert results == []
    worker.join(timeout=5)

    assert results == [{storage_key("u1"): [session.id]}]
