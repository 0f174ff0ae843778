from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session, sessionmaker

from studyportal.core.config import Settings, get_settings
from studyportal.db.kv_store import SqlKeyValueStore
from studyportal.db.session import db_lock
from studyportal.services.schedules import build_engine
from studyportal.services.study_sessions import STORAGE_KEY

logger = logging.getLogger(__name__)

TICK_JOB_ID = "schedule_tick"


class ScheduleTicker:
    """Periodically ticks every schedule stored on the server."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        settings: Settings | None = None,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    def tick_all(self, now: datetime | None = None) -> dict[str, list[str]]:
        """Tick each stored schedule once; returns transferred ids per key."""
        transferred: dict[str, list[str]] = {}
        with db_lock, self.session_factory() as db:
            store = SqlKeyValueStore(db)
            for key in store.keys(f"{STORAGE_KEY}_"):
                ids = build_engine(store, key, self.settings).tick(now)
                if ids:
                    transferred[key] = ids
        return transferred

    def start(self) -> None:
        interval = self.settings.tick_interval_seconds
        if not self.scheduler.get_job(TICK_JOB_ID):
            # Interval triggers fire on a fixed grid; a late run is coalesced
            # rather than queued behind the one still running.
            self.scheduler.add_job(
                self.tick_all,
                trigger="interval",
                seconds=interval,
                id=TICK_JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info(f"Started schedule ticker every {interval}s")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Schedule ticker stopped")
