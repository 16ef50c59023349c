"""Roster administration routes (admin only)."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from admission.core.database import get_session
from admission.core.security import Caller, get_caller
from admission.schemas import (
    EventCreate,
    EventRead,
    GroupCreate,
    GroupRead,
    PreApprovedEvents,
    PreApprovedGroups,
    RoleUpdate,
    UserRead,
)
from admission.services import admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/events", response_model=EventRead, status_code=201)
async def create_event(
    body: EventCreate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """Create an event."""
    return admin.create_event(
        session,
        caller,
        title=body.title,
        scheduled_at=body.scheduled_at,
        description=body.description,
        location=body.location,
        capacity=body.capacity,
        requires_approval=body.requires_approval,
    )


@router.put("/events/{event_id}/pre-approved-groups", response_model=PreApprovedGroups)
async def set_pre_approved_groups(
    event_id: str,
    body: PreApprovedGroups,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Replace the groups pre-approved for an event.

    The groups' own pre-approved event lists change with it.
    """
    groups = admin.set_event_pre_approved_groups(session, caller, event_id, body.group_ids)
    return PreApprovedGroups(group_ids=sorted(groups))


@router.post("/events/{event_id}/pre-approved-users/{user_id}", status_code=204)
async def pre_approve_user(
    event_id: str,
    user_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    admin.add_pre_approved_user(session, caller, event_id, user_id)


@router.delete("/events/{event_id}/pre-approved-users/{user_id}", status_code=204)
async def revoke_user_pre_approval(
    event_id: str,
    user_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    admin.remove_pre_approved_user(session, caller, event_id, user_id)


@router.get("/groups", response_model=list[GroupRead])
async def list_groups(
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    return admin.list_groups(session, caller)


@router.post("/groups", response_model=GroupRead, status_code=201)
async def create_group(
    body: GroupCreate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """Create a group."""
    return admin.create_group(session, caller, name=body.name, description=body.description)


@router.put("/groups/{group_id}/pre-approved-events", response_model=PreApprovedEvents)
async def set_pre_approved_events(
    group_id: str,
    body: PreApprovedEvents,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """Replace the events a group is pre-approved for."""
    events = admin.set_group_pre_approved_events(session, caller, group_id, body.event_ids)
    return PreApprovedEvents(event_ids=sorted(events))


@router.post("/groups/{group_id}/members/{user_id}", status_code=204)
async def add_member(
    group_id: str,
    user_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Add a user to a group.

    The user's cached group list is not touched; it is reconciled the next
    time the user registers for an event.
    """
    admin.add_group_member(session, caller, group_id, user_id)


@router.delete("/groups/{group_id}/members/{user_id}", status_code=204)
async def remove_member(
    group_id: str,
    user_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    admin.remove_group_member(session, caller, group_id, user_id)


@router.put("/users/{user_id}/role", response_model=UserRead)
async def set_role(
    user_id: str,
    body: RoleUpdate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Record a user's role.

    Granting ``security`` also creates the user's security staff profile.
    The caller's session claims are issued separately by the identity
    provider.
    """
    return admin.set_role(session, caller, user_id, body.role)
