"""FastAPI REST API routes for ticket-tracker.

The router is mounted at /api/tickets. DB access is injected through
configure_routes() by the plugin registration or the standalone app.
"""

import logging
from typing import Callable, List, NoReturn, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status

from ticket_tracker.exceptions import TicketingError
from ticket_tracker.models import (
    ImportResult,
    TicketCreate,
    TicketHistoryEntry,
    TicketResponse,
    TicketUpdate,
)
from ticket_tracker.service import TicketService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])

# Service singleton
_service = TicketService()

# Set by configure_routes(). get_db_func() returns a context manager that
# yields a DB connection.
_get_db: Optional[Callable] = None
_schema: str = "public"


def configure_routes(get_db_func: Callable, schema: str = "public") -> None:
    """Configure the router with database access.

    Args:
        get_db_func: Function() -> context-manager DB connection.
        schema: PostgreSQL schema holding the ticket tables.
    """
    global _get_db, _schema
    _get_db = get_db_func
    _schema = schema


def _require_db():
    """Ensure DB access is configured."""
    if _get_db is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ticket DB access not configured",
        )


def _raise_http(e: TicketingError) -> NoReturn:
    raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[TicketResponse])
async def list_tickets(assigned_to_user_id: Optional[str] = Query(None, alias="assignedToUserId")):
    """List tickets, optionally filtered by assignee."""
    _require_db()
    with _get_db() as conn:
        try:
            return _service.list_tickets(conn, _schema, assigned_to_user_id)
        except TicketingError as e:
            _raise_http(e)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(body: TicketCreate):
    """Create a new ticket with status NEW."""
    _require_db()
    logger.info("Received request to create ticket with subject: %s", body.subject)
    with _get_db() as conn:
        return _service.create_ticket(conn, _schema, body)


@router.post("/bulkimport", response_model=ImportResult)
async def bulk_import(file: UploadFile = File(...)):
    """Bulk import tickets from a subject,description,STATUS text file."""
    _require_db()
    logger.info("Received request to bulk import tickets from file: %s", file.filename)
    content = await file.read()
    with _get_db() as conn:
        try:
            count = _service.import_tickets(conn, _schema, content, file.filename)
        except TicketingError as e:
            _raise_http(e)
    logger.info("Bulk import completed for file: %s", file.filename)
    return ImportResult(imported=count, filename=file.filename)


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(ticket_id: str, body: TicketUpdate):
    """Update ticket fields and record the changes in its history."""
    _require_db()
    logger.info("Received request to update ticket with id: %s", ticket_id)
    with _get_db() as conn:
        try:
            return _service.update_ticket(conn, _schema, ticket_id, body)
        except TicketingError as e:
            _raise_http(e)


@router.get("/{ticket_id}/history", response_model=List[TicketHistoryEntry])
async def get_ticket_history(ticket_id: str, type: Optional[str] = Query(None)):
    """Get a ticket's history, optionally filtered by change type."""
    _require_db()
    with _get_db() as conn:
        try:
            return _service.get_ticket_history(conn, _schema, ticket_id, type)
        except TicketingError as e:
            _raise_http(e)
