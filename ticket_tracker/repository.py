"""TicketRepository - record store for tickets, history and users.

Follows the same rules as the service layer:
- Wraps a caller-owned psycopg2 connection (RealDictCursor rows)
- Schema names go through sql.Identifier, values are always bound parameters
- Never commits; transaction boundaries belong to TicketService
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

from psycopg2 import sql

from ticket_tracker.models import ChangeType, Role, Status, Ticket, TicketHistory, User


# =========================================================================== #
# Database Protocol                                                           #
# =========================================================================== #


class DBConnection(Protocol):
    """Protocol for database connections used by the repository.

    This matches the psycopg2 connection interface with a RealDictCursor
    cursor factory. The caller is responsible for connection lifecycle.
    """

    def cursor(self, **kwargs) -> Any: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


_TICKET_COLUMNS = (
    "id, subject, description, created_by, modified_by, assigned_to, "
    "created_at, modified_at, status"
)


class TicketRepository:
    """CRUD access to the ticket tables of one schema."""

    def __init__(self, conn: DBConnection, schema: str):
        self.conn = conn
        self.schema = schema

    def _cursor(self):
        return self.conn.cursor()

    def _query(self, template: str) -> sql.Composed:
        return sql.SQL(template).format(sql.Identifier(self.schema))

    # --- Tickets --- #

    def find_ticket(self, ticket_id: UUID) -> Optional[Ticket]:
        """Find a ticket by id, without its history."""
        cur = self._cursor()
        cur.execute(
            self._query("SELECT * FROM {}.tickets WHERE id = %s"),
            (str(ticket_id),),
        )
        row = cur.fetchone()
        return _row_to_ticket(row) if row else None

    def find_all_tickets(self) -> List[Ticket]:
        cur = self._cursor()
        cur.execute(self._query("SELECT * FROM {}.tickets ORDER BY created_at, id"))
        return [_row_to_ticket(r) for r in cur.fetchall()]

    def find_tickets_by_assignee(self, user_id: UUID) -> List[Ticket]:
        cur = self._cursor()
        cur.execute(
            self._query(
                "SELECT * FROM {}.tickets WHERE assigned_to = %s ORDER BY created_at, id"
            ),
            (str(user_id),),
        )
        return [_row_to_ticket(r) for r in cur.fetchall()]

    def insert_ticket(self, ticket: Ticket) -> Ticket:
        """Insert a new ticket and return it as stored."""
        cur = self._cursor()
        cur.execute(
            self._query(
                "INSERT INTO {}.tickets (" + _TICKET_COLUMNS + ") "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING *"
            ),
            _ticket_params(ticket),
        )
        return _row_to_ticket(cur.fetchone())

    def insert_tickets(self, tickets: Sequence[Ticket]) -> int:
        """Batch-insert tickets in a single executemany call."""
        if not tickets:
            return 0
        cur = self._cursor()
        cur.executemany(
            self._query(
                "INSERT INTO {}.tickets (" + _TICKET_COLUMNS + ") "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)"
            ),
            [_ticket_params(t) for t in tickets],
        )
        return len(tickets)

    def update_ticket(self, ticket: Ticket) -> Ticket:
        """Write all mutable ticket columns and return the stored row."""
        cur = self._cursor()
        cur.execute(
            self._query("""
            UPDATE {}.tickets
            SET subject = %s, description = %s, modified_by = %s,
                assigned_to = %s, modified_at = %s, status = %s
            WHERE id = %s
            RETURNING *
            """),
            (
                ticket.subject,
                ticket.description,
                _id_param(ticket.modified_by_id),
                _id_param(ticket.assigned_to_id),
                ticket.modified_at,
                ticket.status.value,
                str(ticket.id),
            ),
        )
        return _row_to_ticket(cur.fetchone())

    # --- History --- #

    def find_history(self, ticket_id: UUID) -> List[TicketHistory]:
        """All history entries of a ticket in insertion order."""
        cur = self._cursor()
        cur.execute(
            self._query(
                "SELECT * FROM {}.ticket_history WHERE ticket_id = %s ORDER BY seq"
            ),
            (str(ticket_id),),
        )
        return [_row_to_history(r) for r in cur.fetchall()]

    def insert_history(self, ticket_id: UUID, entries: Sequence[TicketHistory]) -> int:
        """Batch-insert history entries; list order becomes seq order."""
        if not entries:
            return 0
        cur = self._cursor()
        cur.executemany(
            self._query("""
            INSERT INTO {}.ticket_history
                (id, ticket_id, type, update_date, updated_by, text)
            VALUES (%s, %s, %s, %s, %s, %s)
            """),
            [
                (
                    str(e.id),
                    str(ticket_id),
                    e.type.value,
                    e.update_date,
                    _id_param(e.updated_by_id),
                    e.text,
                )
                for e in entries
            ],
        )
        return len(entries)

    # --- Users --- #

    def find_user(self, user_id: UUID) -> Optional[User]:
        cur = self._cursor()
        cur.execute(
            self._query("SELECT * FROM {}.users WHERE id = %s"),
            (str(user_id),),
        )
        row = cur.fetchone()
        return _row_to_user(row) if row else None


# --- Row mapping --- #


def _id_param(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def _uuid(value: Any) -> Optional[UUID]:
    """Rows hold UUIDs as str unless psycopg2.extras.register_uuid() was called."""
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _ticket_params(ticket: Ticket) -> tuple:
    return (
        str(ticket.id),
        ticket.subject,
        ticket.description,
        _id_param(ticket.created_by_id),
        _id_param(ticket.modified_by_id),
        _id_param(ticket.assigned_to_id),
        ticket.created_at,
        ticket.modified_at,
        ticket.status.value,
    )


def _row_to_ticket(row: Dict[str, Any]) -> Ticket:
    return Ticket(
        id=_uuid(row["id"]),
        subject=row.get("subject"),
        description=row.get("description"),
        created_by_id=_uuid(row.get("created_by")),
        modified_by_id=_uuid(row.get("modified_by")),
        assigned_to_id=_uuid(row.get("assigned_to")),
        created_at=row.get("created_at"),
        modified_at=row.get("modified_at"),
        status=Status(row["status"]),
    )


def _row_to_history(row: Dict[str, Any]) -> TicketHistory:
    return TicketHistory(
        id=_uuid(row["id"]),
        type=ChangeType(row["type"]),
        update_date=row.get("update_date"),
        updated_by_id=_uuid(row.get("updated_by")),
        text=row["text"],
    )


def _row_to_user(row: Dict[str, Any]) -> User:
    return User(
        id=_uuid(row["id"]),
        username=row["username"],
        password=row.get("password"),
        role=Role(row["role"]),
    )
