import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyportal.api.routes import api_router
from studyportal.core.config import get_settings
from studyportal.core.logger import configure_logging
from studyportal.db.session import SessionLocal, init_db
from studyportal.services.ticker import ScheduleTicker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    ticker = None
    if settings.schedule_ticker_enabled:
        ticker = ScheduleTicker(SessionLocal, settings)
        ticker.start()

    yield

    if ticker is not None:
        ticker.stop()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db()

    app = FastAPI(
        title="Study Portal API",
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    logger.info(f"Study portal API ready ({settings.environment})")
    return app
