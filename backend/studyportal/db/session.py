import logging
import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyportal.core.config import get_settings
from studyportal.db.base import Base

logger = logging.getLogger(__name__)

settings = get_settings()

is_sqlite = settings.database_url.startswith("sqlite")
is_memory = is_sqlite and settings.database_url.rstrip("/") in ("sqlite:", "sqlite:///:memory:")
engine_kwargs = {}
if is_sqlite:
    engine_kwargs["connect_args"] = {"check_same_thread": False}
if is_memory:
    # A memory database lives only as long as its connection, so every
    # session has to share one.
    engine_kwargs["poolclass"] = StaticPool
logger.debug(f"Database connection: {'in-memory SQLite' if is_memory else settings.database_url.split(':')[0]}")
engine = create_engine(settings.database_url, **engine_kwargs)

# An in-memory database is one shared connection, so every unit of work
# (request handlers and the ticker alike) runs under this lock.
db_lock = threading.RLock()

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def init_db() -> None:
    from studyportal import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        with db_lock:
            db.close()
