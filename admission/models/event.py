"""Event model and its set-valued roster fields.

This module defines the Event model together with the link tables that hold
its attendee set and its directly pre-approved users. Each link table is
keyed on ``(event_id, user_id)`` so a row either exists or it does not; the
tables behave as sets and only ever change one id at a time.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from admission.models.checkin import CheckIn
    from admission.models.group import EventPreApprovedGroup


class Event(SQLModel, table=True):
    """A scheduled event with controlled admission.

    Display fields (title, description, location, capacity) are not
    enforced by the admission logic; capacity in particular is not a hard
    cap.

    Attributes:
        id: Document id.
        title: Event title.
        description: Free-text description.
        location: Where the event takes place.
        capacity: Advertised capacity, display only.
        scheduled_at: When the event starts.
        requires_approval: If False, any authenticated user may register.
            If True, one of the pre-approval paths or an approved request
            is needed.
        attendees: Registered users. The only source of truth for
            "is registered".
        pre_approved_users: Users allowed to register without review.
        pre_approved_groups: Groups whose members may register without
            review. The same rows are the groups' ``pre_approved_events``.
        check_ins: Append-only log of checkpoint scans.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    description: str | None = None
    location: str | None = None
    capacity: int | None = None
    scheduled_at: datetime
    requires_approval: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    attendees: list["EventAttendee"] = Relationship(back_populates="event")
    pre_approved_users: list["EventPreApprovedUser"] = Relationship(back_populates="event")
    pre_approved_groups: list["EventPreApprovedGroup"] = Relationship(back_populates="event")
    check_ins: list["CheckIn"] = Relationship(back_populates="event")

    @property
    def attendee_ids(self) -> set[str]:
        return {row.user_id for row in self.attendees}


class EventAttendee(SQLModel, table=True):
    """Membership of one user in an event's attendee set.

    ``user_id`` is deliberately not a foreign key: attendees are bearer
    identities from the identity provider, and a profile document may be
    missing or removed without touching the registration.
    """
    event_id: str = Field(foreign_key="event.id", primary_key=True)
    user_id: str = Field(primary_key=True, index=True)
    registered_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    event: Optional[Event] = Relationship(back_populates="attendees")


class EventPreApprovedUser(SQLModel, table=True):
    """A user individually pre-approved for an approval-gated event."""
    event_id: str = Field(foreign_key="event.id", primary_key=True)
    user_id: str = Field(primary_key=True, index=True)

    event: Optional[Event] = Relationship(back_populates="pre_approved_users")
