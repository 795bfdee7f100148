"""Change-diff engine: applies a TicketUpdate to a Ticket and records audit entries.

The engine works on records only. It never touches the database; user lookup
is injected as a plain callable so the caller decides where users come from.
"""

import logging
import time
from typing import Callable, List, Optional
from uuid import UUID

from ticket_tracker.exceptions import InvalidArgumentError, NotFoundError
from ticket_tracker.models import ChangeType, Ticket, TicketHistory, TicketUpdate, User

logger = logging.getLogger(__name__)

UserResolver = Callable[[UUID], Optional[User]]

# Rendered in audit text wherever the previous value is absent
NULL_TOKEN = "null"


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty, or whitespace-only text."""
    return value is None or not value.strip()


def parse_uuid(value: str, what: str) -> UUID:
    """Parse an identity string, raising InvalidArgumentError when malformed."""
    try:
        return UUID(value.strip())
    except (ValueError, AttributeError, TypeError):
        raise InvalidArgumentError(f"Invalid {what}: '{value}'")


def _describe(old, new) -> str:
    old_text = NULL_TOKEN if old is None else str(old)
    return f"{old_text} -> {new}"


def apply_ticket_update(
    ticket: Ticket,
    data: TicketUpdate,
    resolve_user: UserResolver,
    now: Optional[float] = None,
) -> List[TicketHistory]:
    """Apply requested changes to ``ticket`` in place and return audit entries.

    Fields are evaluated in a fixed order: subject, description, assigned_to,
    status, comment. Entries come back in that order and all share one
    timestamp, which also becomes ``ticket.modified_at`` even when nothing
    changed. Persisting the entries and appending them to ``ticket.history``
    is left to the caller.

    Args:
        ticket: Ticket to mutate.
        data: Requested changes. None or blank values are ignored.
        resolve_user: Function(user_id) -> User or None.
        now: Update timestamp. Defaults to the current time.

    Returns:
        Audit entries, one per changed field plus one for a comment.

    Raises:
        InvalidArgumentError: If assigned_to is not a valid id.
        NotFoundError: If assigned_to does not resolve to a user. Subject and
            description changes already applied to ``ticket`` are kept.
    """
    updated_at = time.time() if now is None else now
    changes = []

    if not is_blank(data.subject) and data.subject != ticket.subject:
        logger.debug("Updating subject from %r to %r", ticket.subject, data.subject)
        changes.append((ChangeType.SUBJECT, _describe(ticket.subject, data.subject)))
        ticket.subject = data.subject

    if not is_blank(data.description) and data.description != ticket.description:
        logger.debug(
            "Updating description from %r to %r", ticket.description, data.description
        )
        changes.append(
            (ChangeType.DESCRIPTION, _describe(ticket.description, data.description))
        )
        ticket.description = data.description

    if not is_blank(data.assigned_to):
        user_id = parse_uuid(data.assigned_to, "user id")
        # Lookup runs even when the id matches the current assignee
        user = resolve_user(user_id)
        if user is None:
            logger.warning("User not found for assignedTo: %s", data.assigned_to)
            raise NotFoundError("User", user_id)
        if user.id != ticket.assigned_to_id:
            logger.debug("Updating assignedTo from %s to %s", ticket.assigned_to_id, user.id)
            changes.append(
                (ChangeType.ASSIGNED_TO, _describe(ticket.assigned_to_id, user.id))
            )
            ticket.assigned_to_id = user.id

    if data.status is not None and data.status != ticket.status:
        logger.debug("Updating status from %s to %s", ticket.status.value, data.status.value)
        changes.append(
            (ChangeType.STATUS, _describe(ticket.status.value, data.status.value))
        )
        ticket.status = data.status

    if not is_blank(data.comment):
        logger.debug("Adding comment: %r", data.comment)
        changes.append((ChangeType.COMMENT, data.comment))

    # TODO: fill updated_by_id once requests carry an authenticated user
    ticket.modified_at = updated_at
    return [
        TicketHistory(type=change_type, text=text, update_date=updated_at)
        for change_type, text in changes
    ]
