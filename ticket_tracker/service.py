"""TicketService - business logic for ticket-tracker.

- Takes a DB connection and schema as parameters (DI)
- Sync methods, RealDictCursor rows via TicketRepository
- Commits on success, rolls back on any failure
"""

import logging
import time
from typing import List, Optional

import psycopg2

from ticket_tracker.changes import apply_ticket_update, is_blank, parse_uuid
from ticket_tracker.exceptions import ImportFailedError, InvalidArgumentError, NotFoundError
from ticket_tracker.importer import decode_import, parse_tickets
from ticket_tracker.models import (
    ChangeType,
    Status,
    Ticket,
    TicketCreate,
    TicketHistoryEntry,
    TicketResponse,
    TicketUpdate,
)
from ticket_tracker.repository import DBConnection, TicketRepository

logger = logging.getLogger(__name__)


def parse_change_type(name: str) -> ChangeType:
    """Parse a change category by name (exact, case-sensitive)."""
    try:
        return ChangeType[name]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown change type '{name}'. Valid types: {[t.value for t in ChangeType]}"
        )


class TicketService:
    """Business logic for ticket operations.

    Takes a database connection and schema as parameters (dependency injection).
    The service does NOT manage connection lifecycle - the caller does.
    """

    def _load_ticket(self, repo: TicketRepository, ticket_id: str) -> Ticket:
        tid = parse_uuid(ticket_id, "ticket id")
        ticket = repo.find_ticket(tid)
        if ticket is None:
            logger.warning("Ticket not found for id: %s", ticket_id)
            raise NotFoundError("Ticket", tid)
        return ticket

    def list_tickets(
        self,
        conn: DBConnection,
        schema: str,
        assigned_to_user_id: Optional[str] = None,
    ) -> List[TicketResponse]:
        """List tickets, optionally only those assigned to one user.

        Args:
            conn: Database connection.
            schema: PostgreSQL schema name.
            assigned_to_user_id: Assignee id; blank or None returns all tickets.

        Raises:
            InvalidArgumentError: If the assignee id is not a valid id.
        """
        logger.info("Listing tickets for assignee: %s", assigned_to_user_id)
        repo = TicketRepository(conn, schema)
        if is_blank(assigned_to_user_id):
            tickets = repo.find_all_tickets()
        else:
            user_id = parse_uuid(assigned_to_user_id, "user id")
            tickets = repo.find_tickets_by_assignee(user_id)
        return [TicketResponse.from_ticket(t) for t in tickets]

    def create_ticket(
        self,
        conn: DBConnection,
        schema: str,
        data: TicketCreate,
    ) -> TicketResponse:
        """Create a new ticket with status NEW.

        Args:
            conn: Database connection.
            schema: PostgreSQL schema name.
            data: Ticket creation data.

        Returns:
            Created ticket response.
        """
        logger.info("Creating new ticket with subject: %s", data.subject)
        # TODO: set created_by_id once requests carry an authenticated user
        ticket = Ticket(
            subject=data.subject,
            description=data.description,
            status=Status.NEW,
            created_at=time.time(),
        )
        repo = TicketRepository(conn, schema)
        try:
            stored = repo.insert_ticket(ticket)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        logger.debug("Created ticket: %s", stored)
        return TicketResponse.from_ticket(stored)

    def update_ticket(
        self,
        conn: DBConnection,
        schema: str,
        ticket_id: str,
        data: TicketUpdate,
    ) -> TicketResponse:
        """Apply an update to a ticket and record its audit entries.

        Args:
            conn: Database connection.
            schema: PostgreSQL schema name.
            ticket_id: Ticket id as text.
            data: Requested changes.

        Returns:
            Updated ticket response.

        Raises:
            InvalidArgumentError: If the ticket or user id is malformed.
            NotFoundError: If the ticket or the assigned user does not exist.
        """
        logger.info("Updating ticket with id: %s", ticket_id)
        repo = TicketRepository(conn, schema)
        try:
            ticket = self._load_ticket(repo, ticket_id)
            entries = apply_ticket_update(ticket, data, repo.find_user)
            logger.debug("Ticket history updates: %s", entries)
            stored = repo.update_ticket(ticket)
            repo.insert_history(ticket.id, entries)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        ticket.history.extend(entries)
        logger.debug("Updated ticket: %s", stored)
        return TicketResponse.from_ticket(stored)

    def get_ticket_history(
        self,
        conn: DBConnection,
        schema: str,
        ticket_id: str,
        change_type: Optional[str] = None,
    ) -> List[TicketHistoryEntry]:
        """Get a ticket's audit history in chronological order.

        Args:
            conn: Database connection.
            schema: PostgreSQL schema name.
            ticket_id: Ticket id as text.
            change_type: Optional change category name to filter by.

        Raises:
            InvalidArgumentError: If the id or change category is malformed.
            NotFoundError: If the ticket does not exist.
        """
        logger.info(
            "Retrieving history for ticket id: %s with change type: %s",
            ticket_id,
            change_type,
        )
        wanted = None if is_blank(change_type) else parse_change_type(change_type)
        repo = TicketRepository(conn, schema)
        ticket = self._load_ticket(repo, ticket_id)
        ticket.history = repo.find_history(ticket.id)

        entries = ticket.history
        if wanted is not None:
            entries = [e for e in entries if e.type == wanted]
        return [TicketHistoryEntry.from_history(e) for e in entries]

    def import_tickets(
        self,
        conn: DBConnection,
        schema: str,
        content: bytes,
        filename: Optional[str] = None,
    ) -> int:
        """Bulk-import tickets from ``subject,description,STATUS`` lines.

        Everything is parsed before anything is written; the first malformed
        line aborts the import. All tickets are then saved in one batch.

        Args:
            conn: Database connection.
            schema: PostgreSQL schema name.
            content: Raw file bytes (UTF-8).
            filename: Original file name, for logging.

        Returns:
            Number of tickets imported.

        Raises:
            InvalidArgumentError: On a malformed line.
            ImportFailedError: If the file cannot be decoded or saved.
        """
        logger.info("Importing tickets from file: %s", filename)
        tickets = parse_tickets(decode_import(content))

        repo = TicketRepository(conn, schema)
        try:
            count = repo.insert_tickets(tickets)
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            logger.exception("Error importing tickets from file: %s", filename)
            raise ImportFailedError(f"Failed to import tickets from {filename}: {e}")
        except Exception:
            conn.rollback()
            raise
        logger.info("Successfully imported %d tickets", count)
        return count
