"""Roster store operations.

Reads go through ordinary ``select`` queries. Every mutation of a
set-valued field or counter is one SQL statement executed on the session's
connection (``INSERT ... ON CONFLICT DO NOTHING``, ``DELETE``, or
``UPDATE ... SET n = n + 1``), so concurrent callers converge regardless of
interleaving. Callers own the transaction and decide when to commit.
"""
import logging
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import delete, or_, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from admission.core.errors import Internal
from admission.models import (
    ApprovalRequest,
    ApprovalStatus,
    CheckIn,
    Event,
    EventAttendee,
    EventPreApprovedGroup,
    EventPreApprovedUser,
    GroupMember,
    SecurityStaff,
    User,
)

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(action: str):
    """Surface roster store failures as ``Internal`` without retrying."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Roster store failure while {action}: {e}")
        raise Internal(f"An error occurred while {action}") from e


def _execute(session: Session, stmt):
    # Pending ORM rows must reach the database before a Core statement
    # that may reference them.
    session.flush()
    return session.connection().execute(stmt)


def _set_add(session: Session, model, **keys) -> bool:
    """Set-union of a single link row. Returns True if the row was new."""
    stmt = insert(model).values(**keys).on_conflict_do_nothing()
    result = _execute(session, stmt)
    return result.rowcount == 1


def _set_remove(session: Session, model, **keys) -> bool:
    stmt = delete(model)
    for column, value in keys.items():
        stmt = stmt.where(getattr(model, column) == value)
    result = _execute(session, stmt)
    return result.rowcount > 0


# Events


def get_event(session: Session, event_id: str) -> Event | None:
    return session.get(Event, event_id)


def is_attendee(session: Session, event_id: str, user_id: str) -> bool:
    statement = (
        select(EventAttendee)
        .where(EventAttendee.event_id == event_id)
        .where(EventAttendee.user_id == user_id)
    )
    return session.exec(statement).first() is not None


def attendee_ids(session: Session, event_id: str) -> list[str]:
    statement = select(EventAttendee.user_id).where(EventAttendee.event_id == event_id)
    return list(session.exec(statement).all())


def add_attendee(session: Session, event_id: str, user_id: str) -> bool:
    """Atomically union ``user_id`` into the event's attendees."""
    return _set_add(
        session,
        EventAttendee,
        event_id=event_id,
        user_id=user_id,
        registered_at=datetime.now(UTC),
    )


def remove_attendee(session: Session, event_id: str, user_id: str) -> bool:
    return _set_remove(session, EventAttendee, event_id=event_id, user_id=user_id)


def upcoming_events(session: Session, since: datetime, search: str | None = None) -> list[Event]:
    """Events starting at or after ``since``, soonest first.

    ``search`` matches title, description or location, case-insensitively.
    """
    statement = select(Event).where(Event.scheduled_at >= since)
    if search:
        pattern = f"%{search}%"
        statement = statement.where(
            or_(
                Event.title.ilike(pattern),
                Event.description.ilike(pattern),
                Event.location.ilike(pattern),
            )
        )
    return list(session.exec(statement.order_by(Event.scheduled_at)).all())


def registered_events(session: Session, user_id: str) -> list[Event]:
    """Events whose attendees contain ``user_id``, soonest first."""
    statement = (
        select(Event)
        .join(EventAttendee, EventAttendee.event_id == Event.id)
        .where(EventAttendee.user_id == user_id)
        .order_by(Event.scheduled_at)
    )
    return list(session.exec(statement).all())


def is_pre_approved_user(session: Session, event_id: str, user_id: str) -> bool:
    statement = (
        select(EventPreApprovedUser)
        .where(EventPreApprovedUser.event_id == event_id)
        .where(EventPreApprovedUser.user_id == user_id)
    )
    return session.exec(statement).first() is not None


def add_pre_approved_user(session: Session, event_id: str, user_id: str) -> bool:
    return _set_add(session, EventPreApprovedUser, event_id=event_id, user_id=user_id)


def remove_pre_approved_user(session: Session, event_id: str, user_id: str) -> bool:
    return _set_remove(session, EventPreApprovedUser, event_id=event_id, user_id=user_id)


def pre_approved_group_ids(session: Session, event_id: str) -> set[str]:
    statement = select(EventPreApprovedGroup.group_id).where(
        EventPreApprovedGroup.event_id == event_id
    )
    return set(session.exec(statement).all())


def pre_approved_event_ids(session: Session, group_id: str) -> set[str]:
    statement = select(EventPreApprovedGroup.event_id).where(
        EventPreApprovedGroup.group_id == group_id
    )
    return set(session.exec(statement).all())


def add_group_pre_approval(session: Session, event_id: str, group_id: str) -> bool:
    return _set_add(session, EventPreApprovedGroup, event_id=event_id, group_id=group_id)


def remove_group_pre_approval(session: Session, event_id: str, group_id: str) -> bool:
    return _set_remove(session, EventPreApprovedGroup, event_id=event_id, group_id=group_id)


# Groups and users


def live_group_ids(session: Session, user_id: str) -> list[str]:
    """Authoritative group membership: groups whose members contain the user."""
    statement = (
        select(GroupMember.group_id)
        .where(GroupMember.user_id == user_id)
        .order_by(GroupMember.group_id)
    )
    return list(session.exec(statement).all())


def add_group_member(session: Session, group_id: str, user_id: str) -> bool:
    return _set_add(session, GroupMember, group_id=group_id, user_id=user_id)


def remove_group_member(session: Session, group_id: str, user_id: str) -> bool:
    return _set_remove(session, GroupMember, group_id=group_id, user_id=user_id)


def get_user(session: Session, user_id: str) -> User | None:
    return session.get(User, user_id)


def set_cached_groups(session: Session, user_id: str, group_ids: Iterable[str]) -> None:
    """Overwrite the ``User.groups`` cache. Idempotent for the same value."""
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(groups=sorted(group_ids), updated_at=datetime.now(UTC))
    )
    _execute(session, stmt)


# Approval requests


def find_approval_request(
    session: Session,
    event_id: str,
    user_id: str,
    status: ApprovalStatus | None = None,
) -> ApprovalRequest | None:
    statement = (
        select(ApprovalRequest)
        .where(ApprovalRequest.event_id == event_id)
        .where(ApprovalRequest.user_id == user_id)
    )
    if status is not None:
        statement = statement.where(ApprovalRequest.status == status)
    return session.exec(statement.order_by(ApprovalRequest.requested_at.desc())).first()


def transition_request(
    session: Session,
    request_id: str,
    status: ApprovalStatus,
    processed_by: str,
) -> bool:
    """Compare-and-set a pending request to a terminal status.

    Returns False when the request was no longer pending, in which case
    nothing was written.
    """
    stmt = (
        update(ApprovalRequest)
        .where(ApprovalRequest.id == request_id)
        .where(ApprovalRequest.status == ApprovalStatus.PENDING)
        .values(status=status, processed_at=datetime.now(UTC), processed_by=processed_by)
    )
    result = _execute(session, stmt)
    return result.rowcount == 1


def delete_pending_request(session: Session, request_id: str) -> bool:
    stmt = (
        delete(ApprovalRequest)
        .where(ApprovalRequest.id == request_id)
        .where(ApprovalRequest.status == ApprovalStatus.PENDING)
    )
    result = _execute(session, stmt)
    return result.rowcount == 1


# Checkpoint activity


def ensure_staff_profile(session: Session, staff_id: str) -> bool:
    """Create the SecurityStaff row if absent. Returns True if created."""
    return _set_add(session, SecurityStaff, id=staff_id, scan_count=0, created_at=datetime.now(UTC))


def record_scan(session: Session, staff_id: str, at: datetime) -> None:
    """Atomically bump the staff member's scan counter and activity time."""
    ensure_staff_profile(session, staff_id)
    stmt = (
        update(SecurityStaff)
        .where(SecurityStaff.id == staff_id)
        .values(scan_count=SecurityStaff.scan_count + 1, last_active=at)
    )
    _execute(session, stmt)


def recent_check_in(
    session: Session,
    event_id: str,
    user_id: str,
    staff_id: str,
    since: datetime,
) -> CheckIn | None:
    statement = (
        select(CheckIn)
        .where(CheckIn.event_id == event_id)
        .where(CheckIn.user_id == user_id)
        .where(CheckIn.staff_id == staff_id)
        .where(CheckIn.checked_in_at >= since)
    )
    return session.exec(statement).first()
