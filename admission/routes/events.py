"""Event routes: listings, details, the caller's credential, and the check-in log."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from admission.core.database import get_session
from admission.core.errors import NotFound
from admission.core.security import Caller, get_caller
from admission.roster import store
from admission.schemas import CheckInRead, CredentialResponse, EventRead
from admission.services import checkin, registration

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[EventRead])
async def upcoming_events(
    q: str | None = None,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    List events that have not started yet, soonest first.

    ``q`` filters on title, description or location.
    """
    return registration.list_upcoming_events(session, caller, search=q)


@router.get("/mine", response_model=list[EventRead])
async def my_events(
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """List the events the caller is registered for; each has a credential."""
    return registration.list_registered_events(session, caller)


@router.get("/{event_id}", response_model=EventRead)
async def event_detail(
    event_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """Return an event's display fields."""
    with store.store_errors("loading the event"):
        event = store.get_event(session, event_id)
    if not event:
        raise NotFound("Event not found")
    return event


@router.get("/{event_id}/credential", response_model=CredentialResponse)
async def event_credential(
    event_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Issue the caller's QR credential for an event.

    Only registered attendees receive a credential. The token encodes the
    (user, event) pair and is checked against the live roster at the
    checkpoint, so holding one does not by itself grant entry.
    """
    token = checkin.issue_credential(session, caller, event_id)
    return CredentialResponse(token=token, event_id=event_id, user_id=caller.uid)


@router.get("/{event_id}/check-ins", response_model=list[CheckInRead])
async def event_check_ins(
    event_id: str,
    unique: bool = False,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    List check-ins recorded for an event, newest first.

    Repeat scans are logged each time. Pass ``unique=true`` to keep only the
    latest record per attendee.
    """
    return checkin.list_check_ins(session, caller, event_id, unique=unique)
