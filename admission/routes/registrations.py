"""Privileged registration route."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from admission.core.database import get_session
from admission.core.security import Caller, get_caller
from admission.schemas import RegistrationRequest, RegistrationResponse
from admission.services import registration

router = APIRouter(prefix="/registrations", tags=["registrations"])


@router.post("", response_model=RegistrationResponse)
async def register_for_event(
    body: RegistrationRequest,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Register the caller for an event.

    Runs the server-side authorization paths (open event, direct
    pre-approval, group pre-approval, approved request) and adds the caller
    to the event's attendees when one of them holds. Clients never write
    the attendee list directly. Returns 403 when no path holds; the caller
    should then file an approval request.
    """
    outcome = registration.register(session, caller, body.event_id)
    return RegistrationResponse(
        success=outcome.success,
        message=outcome.message,
        path=outcome.path.value,
        groups=outcome.groups,
    )


@router.delete("/{event_id}", status_code=204)
async def cancel_registration(
    event_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Cancel the caller's registration for an event.

    Succeeds whether or not the caller was registered. A credential issued
    for the event no longer verifies afterwards.
    """
    registration.unregister(session, caller, event_id)
