"""Checkpoint verification route used by security staff."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from admission.core.database import get_session
from admission.core.security import Caller, get_caller
from admission.schemas import UserData, VerifyRequest, VerifyResponse
from admission.services import checkin

router = APIRouter(prefix="/check-ins", tags=["check-ins"])


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
async def verify_qr_code(
    body: VerifyRequest,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Verify a scanned QR credential for the checkpoint's event.

    Only security staff and admins may call this. An unusable credential is
    not an error: the response has ``valid: false`` and a ``reason`` the
    scanner can show. A valid scan is logged and returns the attendee's
    display identity.
    """
    outcome = checkin.verify(session, caller, body.encoded_data, body.event_id)
    if not outcome.valid:
        return VerifyResponse(valid=False, reason=outcome.reason)
    return VerifyResponse(
        valid=True,
        user_data=UserData(
            display_name=outcome.user.display_name,
            photo_url=outcome.user.photo_url,
            email=outcome.user.email,
            user_id=outcome.user.user_id,
        ),
        message=outcome.message,
    )
