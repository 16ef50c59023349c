"""Check-in log and security staff activity models.

``CheckIn`` rows are an append-only audit trail written by the checkpoint
verifier. Repeat scans of the same credential are recorded again, so the
log is not a single-entry attendance count; readers that need one must
deduplicate.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from admission.models.event import Event


class CheckIn(SQLModel, table=True):
    """One successful checkpoint scan.

    Attributes:
        id: Unique identifier.
        event_id: Event checked into.
        user_id: Attendee whose credential was scanned.
        staff_id: Security staff (or admin) who scanned it.
        checked_in_at: When the scan was accepted.
        display_name: Attendee name as shown at scan time.
        photo_url: Attendee photo as shown at scan time.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_id: str = Field(foreign_key="event.id", index=True)
    user_id: str = Field(index=True)
    staff_id: str = Field(index=True)
    checked_in_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    display_name: str = Field(default="Unknown User")
    photo_url: str = Field(default="")

    event: Optional["Event"] = Relationship(back_populates="check_ins")


class SecurityStaff(SQLModel, table=True):
    """Activity profile for a checkpoint staff member.

    ``scan_count`` only moves through an atomic SQL increment.
    """
    id: str = Field(primary_key=True)  # user id
    scan_count: int = Field(default=0)
    last_active: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
