from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from standup.api.routes_health import router as health_router
from standup.api.routes_standups import router as standups_router

from standup.core.config import get_settings
from standup.core.logging import configure_logging, get_logger
from standup.persistence.db import exec_sql
from standup.persistence.standup_store import StandupStore
from standup.persistence.standup_tables import ALL_TABLES_SQL
from standup.utils.dates import today_in_timezone

logger = get_logger(name=__name__)


def bootstrap_database() -> list[str]:
    """Creates the standup tables and fails over standups left running on past dates."""
    for sql in ALL_TABLES_SQL:
        exec_sql(sql)
    s = get_settings()
    return StandupStore().reconcile_stale_runs(today_in_timezone(s.TIMEZONE))


@asynccontextmanager
async def lifespan(app: FastAPI):
    s = get_settings()
    configure_logging(s.LOG_LEVEL, env=s.ENV, app_name=s.APP_NAME)

    stale = bootstrap_database()
    if stale:
        logger.warning("standup_stale_runs_marked_error", standup_ids=stale)

    yield


app = FastAPI(title="Standup Engine", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(standups_router)
