"""Profile route for the calling user."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from admission.core.database import get_session
from admission.core.security import Caller, get_caller
from admission.schemas import ProfileUpdate, UserRead
from admission.services import admin

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/me", response_model=UserRead)
async def update_profile(
    body: ProfileUpdate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """Create or update the caller's profile (email, display name, photo)."""
    return admin.upsert_profile(
        session,
        caller,
        email=body.email,
        display_name=body.display_name,
        photo_url=body.photo_url,
    )
