"""Domain exceptions for ticket-tracker.

Each error carries the HTTP-equivalent status the transport layer should
answer with, so routes can translate them in one place.
"""

from typing import Any, Optional


class TicketingError(Exception):
    """Base exception for all ticketing errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(TicketingError):
    """Raised when a ticket or a referenced user does not resolve."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message)


class InvalidArgumentError(TicketingError):
    """Raised for malformed ids, unknown status or change-category names."""

    status_code = 400


class ImportFailedError(TicketingError):
    """Raised when a bulk import source cannot be read or persisted."""

    status_code = 500
