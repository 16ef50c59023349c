"""Roster administration: events, groups, pre-approvals, roles and profiles.

Group pre-approvals are stored once, in EventPreApprovedGroup, so changing
them from the event side or from the group side updates both views.
Group membership changes do not touch ``User.groups``; registration-time
read-repair reconciles that cache.
"""
import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlmodel import Session, select

from admission.core.errors import InvalidArgument, NotFound
from admission.core.security import Caller
from admission.models import Event, Group, Role, User
from admission.roster import store
from admission.services.permissions import Operation, authorize

logger = logging.getLogger(__name__)


def _require_event(session: Session, event_id: str) -> Event:
    event = store.get_event(session, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def _require_group(session: Session, group_id: str) -> Group:
    group = session.get(Group, group_id)
    if group is None:
        raise NotFound("Group not found")
    return group


def create_event(
    session: Session,
    caller: Caller,
    *,
    title: str,
    scheduled_at: datetime,
    description: str | None = None,
    location: str | None = None,
    capacity: int | None = None,
    requires_approval: bool = False,
) -> Event:
    authorize(caller, Operation.MANAGE_ROSTER)
    if not title or not title.strip():
        raise InvalidArgument("Event title is required")

    event = Event(
        title=title.strip(),
        description=description,
        location=location,
        capacity=capacity,
        scheduled_at=scheduled_at,
        requires_approval=requires_approval,
    )
    with store.store_errors("creating the event"):
        session.add(event)
        session.commit()
        session.refresh(event)
    logger.info(f"Created event {event.id} ({event.title})")
    return event


def create_group(
    session: Session,
    caller: Caller,
    *,
    name: str,
    description: str | None = None,
) -> Group:
    authorize(caller, Operation.MANAGE_ROSTER)
    if not name or not name.strip():
        raise InvalidArgument("Group name is required")

    group = Group(name=name.strip(), description=description)
    with store.store_errors("creating the group"):
        session.add(group)
        session.commit()
        session.refresh(group)
    logger.info(f"Created group {group.id} ({group.name})")
    return group


def set_event_pre_approved_groups(
    session: Session,
    caller: Caller,
    event_id: str,
    group_ids: Iterable[str],
) -> set[str]:
    """Replace the event's pre-approved groups. Returns the new set."""
    authorize(caller, Operation.MANAGE_ROSTER)
    wanted = set(group_ids)
    with store.store_errors("updating pre-approved groups"):
        _require_event(session, event_id)
        for group_id in wanted:
            _require_group(session, group_id)

        current = store.pre_approved_group_ids(session, event_id)
        for group_id in current - wanted:
            store.remove_group_pre_approval(session, event_id, group_id)
        for group_id in wanted - current:
            store.add_group_pre_approval(session, event_id, group_id)
        session.commit()
    logger.info(f"Pre-approved groups for event {event_id}: {sorted(wanted)}")
    return wanted


def set_group_pre_approved_events(
    session: Session,
    caller: Caller,
    group_id: str,
    event_ids: Iterable[str],
) -> set[str]:
    """Replace the events a group is pre-approved for. Returns the new set."""
    authorize(caller, Operation.MANAGE_ROSTER)
    wanted = set(event_ids)
    with store.store_errors("updating pre-approved events"):
        _require_group(session, group_id)
        for event_id in wanted:
            _require_event(session, event_id)

        current = store.pre_approved_event_ids(session, group_id)
        for event_id in current - wanted:
            store.remove_group_pre_approval(session, event_id, group_id)
        for event_id in wanted - current:
            store.add_group_pre_approval(session, event_id, group_id)
        session.commit()
    logger.info(f"Pre-approved events for group {group_id}: {sorted(wanted)}")
    return wanted


def add_pre_approved_user(session: Session, caller: Caller, event_id: str, user_id: str) -> bool:
    authorize(caller, Operation.MANAGE_ROSTER)
    with store.store_errors("pre-approving the user"):
        _require_event(session, event_id)
        added = store.add_pre_approved_user(session, event_id, user_id)
        session.commit()
    return added


def remove_pre_approved_user(session: Session, caller: Caller, event_id: str, user_id: str) -> bool:
    authorize(caller, Operation.MANAGE_ROSTER)
    with store.store_errors("removing the pre-approval"):
        _require_event(session, event_id)
        removed = store.remove_pre_approved_user(session, event_id, user_id)
        session.commit()
    return removed


def add_group_member(session: Session, caller: Caller, group_id: str, user_id: str) -> bool:
    authorize(caller, Operation.MANAGE_ROSTER)
    with store.store_errors("adding the group member"):
        _require_group(session, group_id)
        added = store.add_group_member(session, group_id, user_id)
        session.commit()
    if added:
        logger.info(f"Added user {user_id} to group {group_id}")
    return added


def remove_group_member(session: Session, caller: Caller, group_id: str, user_id: str) -> bool:
    authorize(caller, Operation.MANAGE_ROSTER)
    with store.store_errors("removing the group member"):
        _require_group(session, group_id)
        removed = store.remove_group_member(session, group_id, user_id)
        session.commit()
    if removed:
        logger.info(f"Removed user {user_id} from group {group_id}")
    return removed


def set_role(session: Session, caller: Caller, user_id: str, role: Role) -> User:
    """Record a user's role. Granting security provisions a staff profile.

    The matching session claim is issued by the identity provider, not here.
    """
    authorize(caller, Operation.MANAGE_ROLES)
    with store.store_errors("updating the role"):
        user = store.get_user(session, user_id)
        if user is None:
            raise NotFound("User not found")
        user.role = role
        user.updated_at = datetime.now(UTC)
        session.add(user)
        if role is Role.SECURITY:
            store.ensure_staff_profile(session, user_id)
        session.commit()
        session.refresh(user)
    logger.info(f"Role for user {user_id} set to {role.value} by {caller.uid}")
    return user


def upsert_profile(
    session: Session,
    caller: Caller,
    *,
    email: str | None = None,
    display_name: str | None = None,
    photo_url: str | None = None,
) -> User:
    """Create or update the caller's own profile. Role and groups are untouched."""
    authorize(caller, Operation.EDIT_OWN_PROFILE)
    with store.store_errors("saving your profile"):
        user = store.get_user(session, caller.uid)
        if user is None:
            user = User(id=caller.uid)
        if email is not None:
            user.email = email
        if display_name is not None:
            user.display_name = display_name
        if photo_url is not None:
            user.photo_url = photo_url
        user.updated_at = datetime.now(UTC)
        session.add(user)
        session.commit()
        session.refresh(user)
    return user


def list_groups(session: Session, caller: Caller) -> list[Group]:
    authorize(caller, Operation.MANAGE_ROSTER)
    with store.store_errors("loading groups"):
        return list(session.exec(select(Group).order_by(Group.name)).all())
