"""Tests for the approval request lifecycle."""

import pytest
from sqlmodel import Session, select

from admission.core.errors import Conflict, InvalidArgument, NotFound, PermissionDenied
from admission.core.security import Caller
from admission.models import ApprovalRequest, ApprovalStatus, Event
from admission.roster import store
from admission.services import approvals, registration


class TestRequestApproval:
    """Tests for filing a request."""

    def test_files_pending_request(self, gated_event: Event, alice: Caller, session: Session):
        outcome = approvals.request_approval(session, alice, gated_event.id)

        assert outcome.created is True
        assert outcome.request.status == ApprovalStatus.PENDING
        assert outcome.request.event_id == gated_event.id
        assert outcome.request.user_id == alice.uid

    def test_second_request_returns_pending_one(
        self, gated_event: Event, alice: Caller, session: Session
    ):
        first = approvals.request_approval(session, alice, gated_event.id)
        second = approvals.request_approval(session, alice, gated_event.id)

        assert second.created is False
        assert second.request.id == first.request.id
        assert len(session.exec(select(ApprovalRequest)).all()) == 1

    def test_open_event_rejected(self, open_event: Event, alice: Caller, session: Session):
        with pytest.raises(InvalidArgument, match="does not require approval"):
            approvals.request_approval(session, alice, open_event.id)

    def test_unknown_event(self, alice: Caller, session: Session):
        with pytest.raises(NotFound):
            approvals.request_approval(session, alice, "evt-missing")

    def test_already_attending(self, gated_event: Event, alice: Caller, session: Session):
        store.add_attendee(session, gated_event.id, alice.uid)
        session.commit()

        with pytest.raises(Conflict, match="Already registered"):
            approvals.request_approval(session, alice, gated_event.id)

    def test_after_denial(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)
        approvals.decide(session, admin, filed.request.id, approve=False)

        with pytest.raises(Conflict, match="denied"):
            approvals.request_approval(session, alice, gated_event.id)

    def test_after_cancel(self, gated_event: Event, alice: Caller, session: Session):
        filed = approvals.request_approval(session, alice, gated_event.id)
        cancelled_id = filed.request.id
        approvals.cancel(session, alice, cancelled_id)

        refiled = approvals.request_approval(session, alice, gated_event.id)
        assert refiled.created is True
        assert refiled.request.id != cancelled_id


class TestDecide:
    """Tests for approving and denying requests."""

    def test_approve_adds_attendee(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)

        decided = approvals.decide(session, admin, filed.request.id, approve=True)

        assert decided.status == ApprovalStatus.APPROVED
        assert decided.processed_by == admin.uid
        assert decided.processed_at is not None
        assert store.attendee_ids(session, gated_event.id) == [alice.uid]

    def test_register_after_approval(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        """Test the registrant is already an attendee once approved."""
        filed = approvals.request_approval(session, alice, gated_event.id)
        approvals.decide(session, admin, filed.request.id, approve=True)

        outcome = registration.register(session, alice, gated_event.id)
        assert outcome.message == registration.ALREADY_REGISTERED_MESSAGE

    def test_deny_does_not_add_attendee(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)

        decided = approvals.decide(session, admin, filed.request.id, approve=False)

        assert decided.status == ApprovalStatus.DENIED
        assert store.attendee_ids(session, gated_event.id) == []

    def test_denied_request_cannot_be_approved(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)
        approvals.decide(session, admin, filed.request.id, approve=False)

        with pytest.raises(Conflict):
            approvals.decide(session, admin, filed.request.id, approve=True)

        session.expire_all()
        assert session.get(ApprovalRequest, filed.request.id).status == ApprovalStatus.DENIED
        assert store.attendee_ids(session, gated_event.id) == []

    def test_approved_request_cannot_be_decided_again(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)
        approvals.decide(session, admin, filed.request.id, approve=True)

        with pytest.raises(Conflict):
            approvals.decide(session, Caller("admin-2", admin.role), filed.request.id, approve=False)

        session.expire_all()
        request = session.get(ApprovalRequest, filed.request.id)
        assert request.status == ApprovalStatus.APPROVED
        assert request.processed_by == admin.uid

    def test_transition_is_compare_and_set(
        self, gated_event: Event, alice: Caller, session: Session
    ):
        """Test a second transition of the same request writes nothing."""
        filed = approvals.request_approval(session, alice, gated_event.id)

        assert store.transition_request(session, filed.request.id, ApprovalStatus.APPROVED, "a1")
        assert not store.transition_request(session, filed.request.id, ApprovalStatus.DENIED, "a2")
        session.commit()

        session.expire_all()
        request = session.get(ApprovalRequest, filed.request.id)
        assert request.status == ApprovalStatus.APPROVED
        assert request.processed_by == "a1"

    def test_non_admin_cannot_decide(
        self, gated_event: Event, alice: Caller, guard: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)

        with pytest.raises(PermissionDenied):
            approvals.decide(session, guard, filed.request.id, approve=True)
        with pytest.raises(PermissionDenied):
            approvals.decide(session, alice, filed.request.id, approve=True)

    def test_unknown_request(self, admin: Caller, session: Session):
        with pytest.raises(NotFound):
            approvals.decide(session, admin, "req-missing", approve=True)


class TestCancel:
    """Tests for withdrawing a request."""

    def test_owner_cancels_pending(self, gated_event: Event, alice: Caller, session: Session):
        filed = approvals.request_approval(session, alice, gated_event.id)
        request_id = filed.request.id

        approvals.cancel(session, alice, request_id)

        session.expire_all()
        assert session.get(ApprovalRequest, request_id) is None

    def test_other_user_cannot_cancel(
        self, gated_event: Event, alice: Caller, bob: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)

        with pytest.raises(PermissionDenied):
            approvals.cancel(session, bob, filed.request.id)

    def test_decided_request_cannot_be_cancelled(
        self, gated_event: Event, alice: Caller, admin: Caller, session: Session
    ):
        filed = approvals.request_approval(session, alice, gated_event.id)
        approvals.decide(session, admin, filed.request.id, approve=True)

        with pytest.raises(Conflict):
            approvals.cancel(session, alice, filed.request.id)


class TestListing:
    """Tests for listing requests."""

    def test_admin_filters_by_status(
        self,
        gated_event: Event,
        alice: Caller,
        bob: Caller,
        admin: Caller,
        session: Session,
    ):
        approved = approvals.request_approval(session, alice, gated_event.id)
        pending = approvals.request_approval(session, bob, gated_event.id)
        approvals.decide(session, admin, approved.request.id, approve=True)

        assert [r.id for r in approvals.list_requests(session, admin, ApprovalStatus.PENDING)] == [
            pending.request.id
        ]
        assert len(approvals.list_requests(session, admin)) == 2

    def test_user_cannot_review(self, alice: Caller, session: Session):
        with pytest.raises(PermissionDenied):
            approvals.list_requests(session, alice)

    def test_own_requests(
        self, gated_event: Event, alice: Caller, bob: Caller, session: Session
    ):
        mine = approvals.request_approval(session, alice, gated_event.id)
        approvals.request_approval(session, bob, gated_event.id)

        assert [r.id for r in approvals.list_own_requests(session, alice)] == [mine.request.id]
