"""Approval request routes."""
from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from admission.core.database import get_session
from admission.core.security import Caller, get_caller
from admission.models import ApprovalStatus
from admission.schemas import ApprovalCreate, ApprovalDecision, ApprovalFiled, ApprovalRead
from admission.services import approvals

router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.post("", response_model=ApprovalFiled)
async def file_request(
    body: ApprovalCreate,
    response: Response,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    File an approval request for an approval-gated event.

    Returns 201 with the new request, or 200 with the existing request if
    one is already pending. A request that was already approved or denied
    yields 409.
    """
    outcome = approvals.request_approval(session, caller, body.event_id)
    response.status_code = 201 if outcome.created else 200
    data = ApprovalRead.model_validate(outcome.request).model_dump()
    return ApprovalFiled(**data, created=outcome.created)


@router.get("", response_model=list[ApprovalRead])
async def list_requests(
    status: ApprovalStatus | None = None,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """List approval requests for review (admin only), newest first."""
    return approvals.list_requests(session, caller, status)


@router.get("/mine", response_model=list[ApprovalRead])
async def my_requests(
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """List the caller's own approval requests."""
    return approvals.list_own_requests(session, caller)


@router.post("/{request_id}/decision", response_model=ApprovalRead)
async def decide_request(
    request_id: str,
    body: ApprovalDecision,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """
    Approve or deny a pending request (admin only).

    Approval also registers the requester for the event. Deciding a request
    that is no longer pending returns 409 and changes nothing.
    """
    return approvals.decide(session, caller, request_id, body.approve)


@router.delete("/{request_id}", status_code=204)
async def cancel_request(
    request_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session),
):
    """Withdraw the caller's own request while it is still pending."""
    approvals.cancel(session, caller, request_id)
    return Response(status_code=204)
