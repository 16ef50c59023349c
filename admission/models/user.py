"""User profile model and the closed role enum."""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Role(str, Enum):
    """Roles a caller can hold. Anything unrecognised is treated as USER."""
    USER = "user"
    ADMIN = "admin"
    SECURITY = "security"


class User(SQLModel, table=True):
    """A registrant or staff profile.

    Attributes:
        id: The identity provider's user id.
        email: Contact email, shown at the checkpoint.
        display_name: Name shown at the checkpoint.
        photo_url: Profile photo URL, shown at the checkpoint.
        role: Role recorded by the provisioning endpoints. Informational;
            authorization reads the session claims instead.
        groups: Cached list of group ids whose ``members`` contain this
            user. May be stale. It is repaired opportunistically at
            registration time and never used for a security decision.
    """
    id: str = Field(primary_key=True)
    email: str | None = Field(default=None, index=True)
    display_name: str | None = None
    photo_url: str | None = None
    role: Role = Field(default=Role.USER)
    groups: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
