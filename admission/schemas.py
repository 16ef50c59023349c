"""Request and response bodies for the JSON API.

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from admission.models import ApprovalStatus, Role


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Registration and credentials


class RegistrationRequest(CamelModel):
    event_id: str | None = None


class RegistrationResponse(CamelModel):
    success: bool
    message: str
    path: str | None = None
    groups: list[str] = Field(default_factory=list)


class CredentialResponse(CamelModel):
    token: str
    event_id: str
    user_id: str


# Approval requests


class ApprovalCreate(CamelModel):
    event_id: str | None = None


class ApprovalDecision(CamelModel):
    approve: bool


class ApprovalRead(CamelModel):
    id: str
    event_id: str
    user_id: str
    status: ApprovalStatus
    requested_at: datetime
    processed_at: datetime | None = None
    processed_by: str | None = None


class ApprovalFiled(ApprovalRead):
    created: bool


# Checkpoint


class VerifyRequest(CamelModel):
    encoded_data: str | None = None
    event_id: str | None = None


class UserData(CamelModel):
    display_name: str
    photo_url: str = Field(alias="photoURL")
    email: str
    user_id: str


class VerifyResponse(CamelModel):
    valid: bool
    reason: str | None = None
    user_data: UserData | None = None
    message: str | None = None


class CheckInRead(CamelModel):
    id: str
    event_id: str
    user_id: str
    staff_id: str
    checked_in_at: datetime
    display_name: str
    photo_url: str = Field(alias="photoURL")


# Roster administration


class EventCreate(CamelModel):
    title: str
    scheduled_at: datetime
    description: str | None = None
    location: str | None = None
    capacity: int | None = None
    requires_approval: bool = False


class EventRead(CamelModel):
    id: str
    title: str
    description: str | None = None
    location: str | None = None
    capacity: int | None = None
    scheduled_at: datetime
    requires_approval: bool


class GroupCreate(CamelModel):
    name: str
    description: str | None = None


class GroupRead(CamelModel):
    id: str
    name: str
    description: str | None = None


class PreApprovedGroups(CamelModel):
    group_ids: list[str]


class PreApprovedEvents(CamelModel):
    event_ids: list[str]


class RoleUpdate(CamelModel):
    role: Role


class ProfileUpdate(CamelModel):
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")


class UserRead(CamelModel):
    id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")
    role: Role
    groups: list[str] = Field(default_factory=list)
