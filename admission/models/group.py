"""Group model, group membership, and group pre-approval links.

``EventPreApprovedGroup`` is the single store for both
``Event.pre_approved_groups`` and ``Group.pre_approved_events``, so the two
directions of the relation cannot drift apart.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from admission.models.event import Event


class Group(SQLModel, table=True):
    """A named set of users that can be pre-approved for events as a whole.

    Attributes:
        id: Document id.
        name: Display name.
        description: Free-text description.
        members: Authoritative membership. ``User.groups`` is only a cache
            of this.
        pre_approved_events: Events this group is pre-approved for.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    description: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    members: list["GroupMember"] = Relationship(back_populates="group")
    pre_approved_events: list["EventPreApprovedGroup"] = Relationship(back_populates="group")

    @property
    def member_ids(self) -> set[str]:
        return {row.user_id for row in self.members}


class GroupMember(SQLModel, table=True):
    group_id: str = Field(foreign_key="group.id", primary_key=True)
    user_id: str = Field(primary_key=True, index=True)

    group: Optional[Group] = Relationship(back_populates="members")


class EventPreApprovedGroup(SQLModel, table=True):
    event_id: str = Field(foreign_key="event.id", primary_key=True)
    group_id: str = Field(foreign_key="group.id", primary_key=True, index=True)

    event: Optional["Event"] = Relationship(back_populates="pre_approved_groups")
    group: Optional[Group] = Relationship(back_populates="pre_approved_events")
