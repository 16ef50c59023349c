"""Approval request lifecycle.

    pending --decide(approve=True)--> approved   (registrant added to attendees)
    pending --decide(approve=False)-> denied
    pending --cancel---------------> (deleted)

Approved and denied are terminal. The pending check and the status write
are one conditional UPDATE, so two reviewers racing on the same request
cannot both win, and the attendee union for an approval happens at most
once.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from admission.core.errors import Conflict, InvalidArgument, NotFound, PermissionDenied
from admission.core.security import Caller
from admission.models import ApprovalRequest, ApprovalStatus
from admission.roster import store
from admission.services.permissions import Operation, authorize

logger = logging.getLogger(__name__)


@dataclass
class RequestOutcome:
    request: ApprovalRequest
    created: bool


def request_approval(session: Session, caller: Caller, event_id: str | None) -> RequestOutcome:
    """File a pending approval request, or return the one already pending.

    Raises:
        InvalidArgument: missing event id, or the event does not require approval.
        NotFound: the event does not exist.
        Conflict: already registered, or a request for this event was
            already approved or denied.
    """
    authorize(caller, Operation.REQUEST_APPROVAL)
    if not event_id or not event_id.strip():
        raise InvalidArgument("The function must be called with an eventId.")

    with store.store_errors("submitting your approval request"):
        event = store.get_event(session, event_id)
        if event is None:
            raise NotFound("The specified event does not exist.")
        if not event.requires_approval:
            raise InvalidArgument("This event does not require approval")
        if store.is_attendee(session, event.id, caller.uid):
            raise Conflict("Already registered for this event")

        existing = store.find_approval_request(session, event.id, caller.uid)
        if existing is not None:
            return _existing_outcome(existing)

        request = ApprovalRequest(event_id=event.id, user_id=caller.uid)
        session.add(request)
        try:
            session.commit()
        except IntegrityError:
            # Another request for the same pair won the race.
            session.rollback()
            existing = store.find_approval_request(session, event_id, caller.uid)
            if existing is None:
                raise
            return _existing_outcome(existing)

        session.refresh(request)
        logger.info(f"Approval request {request.id} filed by user {caller.uid} for event {event_id}")
        return RequestOutcome(request=request, created=True)


def _existing_outcome(existing: ApprovalRequest) -> RequestOutcome:
    if existing.status == ApprovalStatus.PENDING:
        return RequestOutcome(request=existing, created=False)
    raise Conflict(f"Your approval request for this event was already {existing.status.value}")


def decide(session: Session, reviewer: Caller, request_id: str, approve: bool) -> ApprovalRequest:
    """Move a pending request to approved or denied.

    Approving also adds the requester to the event's attendees in the same
    commit, so the registrant does not need to register again.

    Raises:
        NotFound: no such request.
        Conflict: the request is already approved or denied.
    """
    authorize(reviewer, Operation.DECIDE_APPROVAL)
    status = ApprovalStatus.APPROVED if approve else ApprovalStatus.DENIED

    with store.store_errors("processing the approval decision"):
        request = session.get(ApprovalRequest, request_id)
        if request is None:
            raise NotFound("Approval request not found")
        if request.is_terminal:
            raise Conflict(f"Approval request has already been {request.status.value}")

        if not store.transition_request(session, request.id, status, reviewer.uid):
            session.rollback()
            raise Conflict("Approval request has already been processed")
        if approve:
            store.add_attendee(session, request.event_id, request.user_id)
        session.commit()
        session.refresh(request)

    logger.info(
        f"Approval request {request.id} {status.value} by {reviewer.uid} "
        f"(user {request.user_id}, event {request.event_id})"
    )
    return request


def cancel(session: Session, caller: Caller, request_id: str) -> None:
    """Withdraw the caller's own pending request by deleting it."""
    authorize(caller, Operation.CANCEL_APPROVAL)

    with store.store_errors("cancelling the approval request"):
        request = session.get(ApprovalRequest, request_id)
        if request is None:
            raise NotFound("Approval request not found")
        if request.user_id != caller.uid:
            raise PermissionDenied("Only the requesting user can cancel this request")
        if request.is_terminal:
            raise Conflict(f"Approval request has already been {request.status.value}")

        if not store.delete_pending_request(session, request.id):
            session.rollback()
            raise Conflict("Approval request has already been processed")
        session.commit()

    logger.info(f"Approval request {request_id} cancelled by user {caller.uid}")


def list_requests(
    session: Session,
    caller: Caller,
    status: ApprovalStatus | None = None,
) -> list[ApprovalRequest]:
    """Requests for review, newest first."""
    authorize(caller, Operation.LIST_APPROVALS)
    statement = select(ApprovalRequest)
    if status is not None:
        statement = statement.where(ApprovalRequest.status == status)
    with store.store_errors("loading approval requests"):
        return list(session.exec(statement.order_by(ApprovalRequest.requested_at.desc())).all())


def list_own_requests(session: Session, caller: Caller) -> list[ApprovalRequest]:
    authorize(caller, Operation.REQUEST_APPROVAL)
    statement = (
        select(ApprovalRequest)
        .where(ApprovalRequest.user_id == caller.uid)
        .order_by(ApprovalRequest.requested_at.desc())
    )
    with store.store_errors("loading your approval requests"):
        return list(session.exec(statement).all())
