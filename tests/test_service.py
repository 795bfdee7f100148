"""Tests for TicketService with mocked database.

These tests use a mock DB to verify service logic without PostgreSQL.
All test data is fixed and deterministic.
"""

import logging
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from ticket_tracker.exceptions import ImportFailedError, InvalidArgumentError, NotFoundError
from ticket_tracker.models import ChangeType, Status, TicketCreate, TicketUpdate
from ticket_tracker.service import TicketService, parse_change_type


# --------------------------------------------------------------------------- #
# Fixtures                                                                    #
# --------------------------------------------------------------------------- #

FIXED_TIME = 1700000000.0
SCHEMA = "test_project"
TICKET_ID = "11111111-1111-1111-1111-111111111111"
USER_ID = "22222222-2222-2222-2222-222222222222"
OTHER_USER_ID = "33333333-3333-3333-3333-333333333333"


def _make_ticket_row(
    id=TICKET_ID,
    subject="Test ticket",
    description="Test description",
    created_by=None,
    modified_by=None,
    assigned_to=None,
    created_at=FIXED_TIME,
    modified_at=None,
    status="NEW",
):
    """Create a mock ticket row dict."""
    return {
        "id": id,
        "subject": subject,
        "description": description,
        "created_by": created_by,
        "modified_by": modified_by,
        "assigned_to": assigned_to,
        "created_at": created_at,
        "modified_at": modified_at,
        "status": status,
    }


def _make_history_row(
    id="44444444-4444-4444-4444-444444444444",
    ticket_id=TICKET_ID,
    seq=1,
    type="STATUS",
    update_date=FIXED_TIME,
    updated_by=None,
    text="NEW -> CLOSED",
):
    return {
        "id": id,
        "ticket_id": ticket_id,
        "seq": seq,
        "type": type,
        "update_date": update_date,
        "updated_by": updated_by,
        "text": text,
    }


def _make_user_row(id=USER_ID, username="alice", role="SUPPORT"):
    return {"id": id, "username": username, "password": "secret", "role": role}


def _mock_conn_and_cursor(rows=None, fetchone_value=None):
    """Create a mock connection and cursor.

    Args:
        rows: List of rows for fetchall to return.
        fetchone_value: Value for fetchone to return (if None, returns first of rows).
    """
    conn = MagicMock()
    cur = MagicMock()
    conn.cursor.return_value = cur

    if rows is not None:
        cur.fetchall.return_value = rows

    if fetchone_value is not None:
        cur.fetchone.return_value = fetchone_value
    elif rows:
        cur.fetchone.return_value = rows[0]
    else:
        cur.fetchone.return_value = None

    return conn, cur


# --------------------------------------------------------------------------- #
# List tests                                                                  #
# --------------------------------------------------------------------------- #


class TestListTickets:
    def setup_method(self):
        self.service = TicketService()

    def test_logs_operation_on_entry(self, caplog):
        conn, cur = _mock_conn_and_cursor(rows=[])

        with caplog.at_level(logging.INFO, logger="ticket_tracker.service"):
            self.service.list_tickets(conn, SCHEMA, USER_ID)

        assert f"Listing tickets for assignee: {USER_ID}" in caplog.messages

    def test_blank_filter_returns_all(self):
        rows = [_make_ticket_row(), _make_ticket_row(id=OTHER_USER_ID, assigned_to=USER_ID)]
        conn, cur = _mock_conn_and_cursor(rows=rows)

        for blank in (None, "", "   "):
            result = self.service.list_tickets(conn, SCHEMA, blank)
            assert len(result) == 2

        query = cur.execute.call_args[0]
        assert len(query) == 1  # no bound parameters for the unfiltered query

    def test_filter_by_assignee(self):
        rows = [_make_ticket_row(assigned_to=USER_ID)]
        conn, cur = _mock_conn_and_cursor(rows=rows)

        result = self.service.list_tickets(conn, SCHEMA, USER_ID)

        assert len(result) == 1
        assert result[0].assigned_to == USER_ID
        assert cur.execute.call_args[0][1] == (USER_ID,)

    def test_malformed_assignee_id(self):
        conn, cur = _mock_conn_and_cursor(rows=[])
        with pytest.raises(InvalidArgumentError):
            self.service.list_tickets(conn, SCHEMA, "not-a-uuid")
        cur.execute.assert_not_called()


# --------------------------------------------------------------------------- #
# Create tests                                                                #
# --------------------------------------------------------------------------- #


class TestCreateTicket:
    def setup_method(self):
        self.service = TicketService()

    @patch("ticket_tracker.service.time")
    def test_create_forces_new_status(self, mock_time):
        mock_time.time.return_value = FIXED_TIME
        row = _make_ticket_row(subject="New ticket", description="Body")
        conn, cur = _mock_conn_and_cursor(fetchone_value=row)

        result = self.service.create_ticket(
            conn, SCHEMA, TicketCreate(subject="New ticket", description="Body")
        )

        assert result.status == Status.NEW
        assert result.subject == "New ticket"
        assert result.created_by is None
        conn.commit.assert_called_once()

        params = cur.execute.call_args[0][1]
        assert params[1:4] == ("New ticket", "Body", None)
        assert params[6] == FIXED_TIME
        assert params[7] is None  # modified_at
        assert params[8] == "NEW"

    def test_create_rolls_back_on_error(self):
        conn, cur = _mock_conn_and_cursor()
        cur.execute.side_effect = psycopg2.OperationalError("boom")

        with pytest.raises(psycopg2.OperationalError):
            self.service.create_ticket(conn, SCHEMA, TicketCreate(subject="x"))
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()


# --------------------------------------------------------------------------- #
# Update tests                                                                #
# --------------------------------------------------------------------------- #


class TestUpdateTicket:
    def setup_method(self):
        self.service = TicketService()

    @patch("ticket_tracker.changes.time")
    def test_update_records_history(self, mock_time):
        mock_time.time.return_value = FIXED_TIME
        current = _make_ticket_row(subject="Old", status="NEW")
        updated = _make_ticket_row(subject="New", status="CLOSED", modified_at=FIXED_TIME)
        conn, cur = _mock_conn_and_cursor()
        cur.fetchone.side_effect = [current, updated]

        data = TicketUpdate(subject="New", status=Status.CLOSED, comment="Done")
        result = self.service.update_ticket(conn, SCHEMA, TICKET_ID, data)

        assert result.subject == "New"
        assert result.modified_at == FIXED_TIME
        conn.commit.assert_called_once()

        update_params = cur.execute.call_args_list[1][0][1]
        assert update_params[0] == "New"
        assert update_params[4] == FIXED_TIME
        assert update_params[5] == "CLOSED"

        history_params = cur.executemany.call_args[0][1]
        assert [(p[2], p[5]) for p in history_params] == [
            ("SUBJECT", "Old -> New"),
            ("STATUS", "NEW -> CLOSED"),
            ("COMMENT", "Done"),
        ]
        assert {p[3] for p in history_params} == {FIXED_TIME}
        assert {p[1] for p in history_params} == {TICKET_ID}

    @patch("ticket_tracker.changes.time")
    def test_update_with_assignee_looks_up_user(self, mock_time):
        mock_time.time.return_value = FIXED_TIME
        current = _make_ticket_row()
        updated = _make_ticket_row(assigned_to=USER_ID)
        conn, cur = _mock_conn_and_cursor()
        cur.fetchone.side_effect = [current, _make_user_row(), updated]

        result = self.service.update_ticket(
            conn, SCHEMA, TICKET_ID, TicketUpdate(assigned_to=USER_ID)
        )

        assert result.assigned_to == USER_ID
        history_params = cur.executemany.call_args[0][1]
        assert history_params[0][2] == "ASSIGNED_TO"
        assert history_params[0][5] == f"null -> {USER_ID}"

    @patch("ticket_tracker.changes.time")
    def test_noop_update_still_saves_modified_at(self, mock_time):
        mock_time.time.return_value = FIXED_TIME
        current = _make_ticket_row()
        updated = _make_ticket_row(modified_at=FIXED_TIME)
        conn, cur = _mock_conn_and_cursor()
        cur.fetchone.side_effect = [current, updated]

        result = self.service.update_ticket(conn, SCHEMA, TICKET_ID, TicketUpdate())

        assert result.modified_at == FIXED_TIME
        cur.executemany.assert_not_called()
        conn.commit.assert_called_once()

    def test_update_missing_ticket(self):
        conn, cur = _mock_conn_and_cursor(fetchone_value=None)

        with pytest.raises(NotFoundError, match="Ticket"):
            self.service.update_ticket(conn, SCHEMA, TICKET_ID, TicketUpdate(subject="x"))
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_update_malformed_ticket_id(self):
        conn, cur = _mock_conn_and_cursor()

        with pytest.raises(InvalidArgumentError):
            self.service.update_ticket(conn, SCHEMA, "42", TicketUpdate(subject="x"))
        cur.execute.assert_not_called()

    def test_update_unknown_assignee_persists_nothing(self):
        current = _make_ticket_row()
        conn, cur = _mock_conn_and_cursor()
        cur.fetchone.side_effect = [current, None]

        with pytest.raises(NotFoundError, match="User"):
            self.service.update_ticket(
                conn,
                SCHEMA,
                TICKET_ID,
                TicketUpdate(subject="Changed", assigned_to=USER_ID, comment="c"),
            )

        assert cur.execute.call_count == 2  # ticket lookup + user lookup
        cur.executemany.assert_not_called()
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()


# --------------------------------------------------------------------------- #
# History tests                                                               #
# --------------------------------------------------------------------------- #


class TestGetTicketHistory:
    def setup_method(self):
        self.service = TicketService()

    def _conn_with_history(self):
        history = [
            _make_history_row(id="44444444-0000-0000-0000-000000000001", seq=1,
                              type="STATUS", text="NEW -> IN_PROGRESS"),
            _make_history_row(id="44444444-0000-0000-0000-000000000002", seq=2,
                              type="COMMENT", text="working on it"),
            _make_history_row(id="44444444-0000-0000-0000-000000000003", seq=3,
                              type="STATUS", text="IN_PROGRESS -> CLOSED"),
        ]
        conn, cur = _mock_conn_and_cursor(rows=history, fetchone_value=_make_ticket_row())
        return conn, cur

    def test_all_entries_in_order(self):
        conn, cur = self._conn_with_history()

        result = self.service.get_ticket_history(conn, SCHEMA, TICKET_ID)

        assert [e.text for e in result] == [
            "NEW -> IN_PROGRESS",
            "working on it",
            "IN_PROGRESS -> CLOSED",
        ]
        assert all(e.updated_by is None for e in result)

    def test_filter_by_type(self):
        conn, cur = self._conn_with_history()

        result = self.service.get_ticket_history(conn, SCHEMA, TICKET_ID, "STATUS")

        assert [e.type for e in result] == [ChangeType.STATUS, ChangeType.STATUS]
        assert [e.text for e in result] == ["NEW -> IN_PROGRESS", "IN_PROGRESS -> CLOSED"]

    def test_filter_with_no_matches(self):
        conn, cur = self._conn_with_history()
        assert self.service.get_ticket_history(conn, SCHEMA, TICKET_ID, "SUBJECT") == []

    def test_missing_ticket(self):
        conn, cur = _mock_conn_and_cursor(fetchone_value=None)
        with pytest.raises(NotFoundError):
            self.service.get_ticket_history(conn, SCHEMA, TICKET_ID)

    def test_unknown_change_type(self):
        conn, cur = _mock_conn_and_cursor(fetchone_value=_make_ticket_row())
        with pytest.raises(InvalidArgumentError, match="Unknown change type"):
            self.service.get_ticket_history(conn, SCHEMA, TICKET_ID, "PRIORITY")

    def test_parse_change_type(self):
        assert parse_change_type("ASSIGNED_TO") == ChangeType.ASSIGNED_TO


# --------------------------------------------------------------------------- #
# Import tests                                                                #
# --------------------------------------------------------------------------- #


class TestImportTickets:
    def setup_method(self):
        self.service = TicketService()

    @patch("ticket_tracker.importer.time")
    def test_import_saves_one_batch(self, mock_time):
        mock_time.time.return_value = FIXED_TIME
        conn, cur = _mock_conn_and_cursor()
        content = b"subject,description,NEW\nsubject2,description2,CLOSED"

        count = self.service.import_tickets(conn, SCHEMA, content, "tickets.csv")

        assert count == 2
        cur.executemany.assert_called_once()
        params = cur.executemany.call_args[0][1]
        assert [(p[1], p[2], p[8]) for p in params] == [
            ("subject", "description", "NEW"),
            ("subject2", "description2", "CLOSED"),
        ]
        assert {p[6] for p in params} == {FIXED_TIME}
        assert all(p[3] is None and p[5] is None for p in params)
        conn.commit.assert_called_once()

    def test_malformed_line_aborts_before_any_write(self):
        conn, cur = _mock_conn_and_cursor()

        with pytest.raises(InvalidArgumentError, match="Line 2"):
            self.service.import_tickets(conn, SCHEMA, b"a,b,NEW\nc,d,BOGUS", "bad.csv")
        cur.executemany.assert_not_called()
        conn.commit.assert_not_called()

    def test_database_failure_raises_import_failed(self):
        conn, cur = _mock_conn_and_cursor()
        cur.executemany.side_effect = psycopg2.DatabaseError("disk full")

        with pytest.raises(ImportFailedError, match="tickets.csv"):
            self.service.import_tickets(conn, SCHEMA, b"a,b,NEW", "tickets.csv")
        conn.rollback.assert_called_once()

    def test_undecodable_file(self):
        conn, cur = _mock_conn_and_cursor()
        with pytest.raises(ImportFailedError):
            self.service.import_tickets(conn, SCHEMA, b"\xff\xfe", "binary.bin")
        cur.executemany.assert_not_called()

    def test_empty_file_imports_nothing(self):
        conn, cur = _mock_conn_and_cursor()
        assert self.service.import_tickets(conn, SCHEMA, b"", "empty.csv") == 0
        cur.executemany.assert_not_called()
        conn.commit.assert_called_once()
