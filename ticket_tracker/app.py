"""Standalone FastAPI application for ticket-tracker."""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Callable, Optional

import psycopg2
from fastapi import FastAPI
from psycopg2.extras import RealDictCursor

from ticket_tracker.config import TicketingSettings, get_settings
from ticket_tracker.plugin import register_plugin
from ticket_tracker.schema import get_all_ticket_tables_sql

logger = logging.getLogger(__name__)


def make_db_func(database_url: str):
    """Build a get_db function opening one connection per request."""

    @contextmanager
    def get_db():
        conn = psycopg2.connect(database_url, cursor_factory=RealDictCursor)
        try:
            yield conn
        finally:
            conn.close()

    return get_db


def ensure_tables(get_db: Callable, schema: str) -> None:
    """Run the ticket table DDL in one transaction."""
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(get_all_ticket_tables_sql(schema))
        conn.commit()
    logger.info("Ticket tables ensured in schema %s", schema)


def create_app(settings: Optional[TicketingSettings] = None) -> FastAPI:
    """Create the ticket-tracker app from settings."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    get_db = make_db_func(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_tables:
            ensure_tables(get_db, settings.db_schema)
        yield

    app = FastAPI(title="Ticket Tracker", lifespan=lifespan)
    register_plugin(app, get_db, schema=settings.db_schema)
    return app
