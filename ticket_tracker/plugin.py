"""Plugin registration entry point for ticket-tracker.

Provides a single function to wire the REST API routes and table DDL into
a host FastAPI application.
"""

import logging
from typing import Any, Callable, Dict

from ticket_tracker.api_routes import configure_routes, router
from ticket_tracker.schema import get_all_ticket_tables_sql

logger = logging.getLogger(__name__)


def register_plugin(
    api_router: Any,
    get_db_func: Callable,
    schema: str = "public",
) -> Dict[str, Any]:
    """One-call plugin registration.

    Wires up:
    1. REST API routes on the api_router
    2. Returns the DDL function for creating the ticket tables

    Args:
        api_router: FastAPI app or APIRouter to include ticket routes.
        get_db_func: Function() -> context-manager DB connection.
        schema: PostgreSQL schema holding the ticket tables.

    Returns:
        Dict with:
            - schema_sql_func: Function(schema) -> DDL SQL for the tables
    """
    configure_routes(get_db_func=get_db_func, schema=schema)
    api_router.include_router(router)
    logger.info("ticket_tracker: REST API routes mounted (schema=%s)", schema)

    return {"schema_sql_func": get_all_ticket_tables_sql}
