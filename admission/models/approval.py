"""Approval request model for manually reviewed registrations.

A request is filed by a registrant for an approval-gated event that none
of the automatic paths admit. It starts ``pending`` and moves exactly once
to ``approved`` or ``denied``; both are terminal. A pending request may be
cancelled by its requester, which deletes the row.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ApprovalRequest(SQLModel, table=True):
    """A registrant's request to attend an approval-gated event.

    At most one request exists per (event, user); the unique constraint
    turns a racing duplicate into an integrity error that the service
    resolves to the existing row.

    Attributes:
        id: Document id.
        event_id: Event being requested.
        user_id: Requesting registrant.
        status: pending, approved or denied.
        requested_at: When the request was filed.
        processed_at: When a reviewer decided it. None while pending.
        processed_by: Reviewer's user id. None while pending.
    """
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_approval_event_user"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_id: str = Field(foreign_key="event.id", index=True)
    user_id: str = Field(index=True)
    status: ApprovalStatus = Field(default=ApprovalStatus.PENDING, index=True)
    requested_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    processed_by: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != ApprovalStatus.PENDING
