"""Bulk import parser for comma-delimited ticket files.

Format: one ticket per line, ``subject,description,STATUS``. There is no
header row and no quoting; fields after the third are ignored.
"""

import logging
import time
from typing import List, Optional

from ticket_tracker.exceptions import ImportFailedError, InvalidArgumentError
from ticket_tracker.models import Status, Ticket

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ","
FIELD_COUNT = 3


def parse_status(name: str) -> Status:
    """Parse a status by member name (exact, case-sensitive)."""
    try:
        return Status[name]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown status '{name}'. Valid statuses: {[s.value for s in Status]}"
        )


def decode_import(content: bytes) -> str:
    """Decode an uploaded import file as UTF-8."""
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ImportFailedError(f"Import file must be UTF-8 encoded: {e}")


def parse_tickets(text: str, created_at: Optional[float] = None) -> List[Ticket]:
    """Parse import text into new tickets.

    Every ticket shares one ``created_at`` captured before the first line is
    read. The first malformed line aborts the whole parse.

    Raises:
        InvalidArgumentError: On a line with too few fields or an unknown status.
    """
    if created_at is None:
        created_at = time.time()

    tickets: List[Ticket] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        tokens = line.split(FIELD_SEPARATOR)
        if len(tokens) < FIELD_COUNT:
            raise InvalidArgumentError(
                f"Line {line_no}: expected subject,description,status but got {line!r}"
            )
        try:
            status = parse_status(tokens[2])
        except InvalidArgumentError as e:
            raise InvalidArgumentError(f"Line {line_no}: {e.message}")

        ticket = Ticket(
            subject=tokens[0],
            description=tokens[1],
            status=status,
            created_at=created_at,
        )
        logger.debug("Parsed ticket from import line %d: %s", line_no, ticket)
        tickets.append(ticket)
    return tickets
