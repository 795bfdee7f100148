"""Pydantic records and request/response models for ticket-tracker."""

from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# --------------------------------------------------------------------------- #
# Enums                                                                       #
# --------------------------------------------------------------------------- #


class Status(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class ChangeType(str, Enum):
    SUBJECT = "SUBJECT"
    DESCRIPTION = "DESCRIPTION"
    ASSIGNED_TO = "ASSIGNED_TO"
    STATUS = "STATUS"
    COMMENT = "COMMENT"


class Role(str, Enum):
    USER = "USER"
    SUPPORT = "SUPPORT"
    PRODUCT = "PRODUCT"


# --------------------------------------------------------------------------- #
# Records                                                                     #
# --------------------------------------------------------------------------- #


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    username: str
    # Opaque credential, never read by ticketing logic
    password: Optional[str] = Field(None, repr=False)
    role: Role = Role.USER


class TicketHistory(BaseModel):
    """One audit entry. Owned by exactly one ticket and never edited."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    type: ChangeType
    update_date: Optional[float] = None
    updated_by_id: Optional[UUID] = None
    text: str


class Ticket(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    subject: Optional[str] = None
    description: Optional[str] = None
    created_by_id: Optional[UUID] = None
    modified_by_id: Optional[UUID] = None
    assigned_to_id: Optional[UUID] = None
    created_at: Optional[float] = None
    modified_at: Optional[float] = None
    status: Status = Status.NEW
    history: List[TicketHistory] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Request models                                                              #
# --------------------------------------------------------------------------- #


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketCreate(_CamelModel):
    subject: Optional[str] = None
    description: Optional[str] = None


class TicketUpdate(_CamelModel):
    subject: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    status: Optional[Status] = None
    comment: Optional[str] = None


# --------------------------------------------------------------------------- #
# Response models                                                             #
# --------------------------------------------------------------------------- #


class TicketResponse(_CamelModel):
    id: UUID
    subject: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[float] = None
    modified_at: Optional[float] = None
    status: Status

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            subject=ticket.subject,
            description=ticket.description,
            created_by=_id_text(ticket.created_by_id),
            modified_by=_id_text(ticket.modified_by_id),
            assigned_to=_id_text(ticket.assigned_to_id),
            created_at=ticket.created_at,
            modified_at=ticket.modified_at,
            status=ticket.status,
        )


class TicketHistoryEntry(_CamelModel):
    type: ChangeType
    update_date: Optional[float] = None
    updated_by: Optional[str] = None
    text: str

    @classmethod
    def from_history(cls, entry: TicketHistory) -> "TicketHistoryEntry":
        return cls(
            type=entry.type,
            update_date=entry.update_date,
            updated_by=_id_text(entry.updated_by_id),
            text=entry.text,
        )


class ImportResult(_CamelModel):
    imported: int
    filename: Optional[str] = None


def _id_text(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None
