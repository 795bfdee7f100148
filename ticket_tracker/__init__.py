"""Ticket Tracker - ticket tracking backend with per-field audit history."""

from ticket_tracker.changes import apply_ticket_update
from ticket_tracker.exceptions import (
    ImportFailedError,
    InvalidArgumentError,
    NotFoundError,
    TicketingError,
)
from ticket_tracker.models import (
    ChangeType,
    Role,
    Status,
    Ticket,
    TicketCreate,
    TicketHistory,
    TicketHistoryEntry,
    TicketResponse,
    TicketUpdate,
    User,
)
from ticket_tracker.service import TicketService
from ticket_tracker.schema import get_all_ticket_tables_sql

__version__ = "0.1.0"

__all__ = [
    "TicketService",
    "apply_ticket_update",
    "Ticket",
    "TicketHistory",
    "User",
    "Status",
    "ChangeType",
    "Role",
    "TicketCreate",
    "TicketUpdate",
    "TicketResponse",
    "TicketHistoryEntry",
    "TicketingError",
    "NotFoundError",
    "InvalidArgumentError",
    "ImportFailedError",
    "get_all_ticket_tables_sql",
]
