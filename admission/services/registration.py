"""Registration authorization.

Decides whether a registrant may join an event and, if so, adds them to
the event's attendees. The paths are tried in a fixed order and the first
one that holds authorizes the registration; no path is "better" than
another:

    1. Open event            requires_approval is False
    2. Direct pre-approval   registrant is in the event's pre-approved users
    3. Group pre-approval    a group the registrant *currently* belongs to
                             is pre-approved for the event
    4. Approved request      an ApprovalRequest for the pair is approved

If none holds the caller gets PermissionDenied and should file an approval
request.

Group membership is always recomputed from GroupMember rows. The cached
``User.groups`` list is only compared against that result and rewritten
when it differs (read-repair); it never decides anything.
"""
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from admission.core.errors import InvalidArgument, NotFound, PermissionDenied
from admission.core.security import Caller
from admission.models import ApprovalStatus, Event
from admission.roster import store
from admission.services.permissions import Operation, authorize

logger = logging.getLogger(__name__)

DENIED_MESSAGE = (
    "You do not have permission to register for this event. Please request approval first."
)


class AuthorizationPath(str, Enum):
    OPEN = "open"
    PRE_APPROVED_USER = "pre_approved_user"
    PRE_APPROVED_GROUP = "pre_approved_group"
    APPROVED_REQUEST = "approved_request"


SUCCESS_MESSAGES = {
    AuthorizationPath.OPEN: "Successfully registered for event",
    AuthorizationPath.PRE_APPROVED_USER: "Successfully registered as pre-approved user",
    AuthorizationPath.PRE_APPROVED_GROUP: "Successfully registered as member of pre-approved group",
    AuthorizationPath.APPROVED_REQUEST: "Successfully registered with approved request",
}
ALREADY_REGISTERED_MESSAGE = "Already registered for this event"


@dataclass
class GroupCacheRepair:
    user_id: str
    cached: list[str]
    live: list[str]


@dataclass
class Decision:
    path: AuthorizationPath | None
    matching_groups: list[str] = field(default_factory=list)
    repair: GroupCacheRepair | None = None


@dataclass
class RegistrationOutcome:
    success: bool
    message: str
    path: AuthorizationPath
    groups: list[str] = field(default_factory=list)
    newly_registered: bool = False


def resolve(session: Session, user_id: str, event: Event) -> Decision:
    """Evaluate the authorization paths for ``user_id`` on ``event``.

    Read-only; any cache repair it finds necessary is returned, not applied.
    """
    if not event.requires_approval:
        return Decision(path=AuthorizationPath.OPEN)

    if store.is_pre_approved_user(session, event.id, user_id):
        return Decision(path=AuthorizationPath.PRE_APPROVED_USER)

    repair = None
    pre_approved_groups = store.pre_approved_group_ids(session, event.id)
    if pre_approved_groups:
        user = store.get_user(session, user_id)
        if user is None:
            raise NotFound("User not found")

        live = store.live_group_ids(session, user_id)
        if sorted(user.groups or []) != live:
            repair = GroupCacheRepair(user_id=user_id, cached=list(user.groups or []), live=live)

        matching = [group_id for group_id in live if group_id in pre_approved_groups]
        if matching:
            return Decision(
                path=AuthorizationPath.PRE_APPROVED_GROUP,
                matching_groups=matching,
                repair=repair,
            )

    approved = store.find_approval_request(
        session, event.id, user_id, status=ApprovalStatus.APPROVED
    )
    if approved is not None:
        return Decision(path=AuthorizationPath.APPROVED_REQUEST, repair=repair)

    return Decision(path=None, repair=repair)


def repair_group_cache(session: Session, repair: GroupCacheRepair | None) -> bool:
    """Best-effort rewrite of a stale ``User.groups`` cache.

    Runs in its own commit after the registration decision has been made.
    Failure is logged and swallowed so it can never block authorization.
    """
    if repair is None:
        return False
    try:
        store.set_cached_groups(session, repair.user_id, repair.live)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(f"Could not repair group cache for user {repair.user_id}: {e}")
        return False
    logger.info(
        f"Repaired group cache for user {repair.user_id}: {repair.cached} -> {repair.live}"
    )
    return True


def register(session: Session, caller: Caller, event_id: str | None) -> RegistrationOutcome:
    """Register the caller for ``event_id`` if any authorization path allows it.

    Raises:
        InvalidArgument: event_id missing or blank.
        NotFound: the event, or the registrant's profile when the group path
            needs it, does not exist.
        PermissionDenied: no authorization path holds.
        Internal: the roster store failed.
    """
    authorize(caller, Operation.REGISTER)
    if not event_id or not event_id.strip():
        raise InvalidArgument("The function must be called with an eventId.")

    with store.store_errors("processing your registration"):
        event = store.get_event(session, event_id)
        if event is None:
            raise NotFound("The specified event does not exist.")

        decision = resolve(session, caller.uid, event)

        outcome = None
        if decision.path is not None:
            # Re-check membership so a retried call never relies on the
            # union being applied at most once.
            if store.is_attendee(session, event.id, caller.uid):
                outcome = RegistrationOutcome(
                    success=True,
                    message=ALREADY_REGISTERED_MESSAGE,
                    path=decision.path,
                    groups=decision.matching_groups,
                )
            else:
                added = store.add_attendee(session, event.id, caller.uid)
                session.commit()
                outcome = RegistrationOutcome(
                    success=True,
                    message=SUCCESS_MESSAGES[decision.path] if added else ALREADY_REGISTERED_MESSAGE,
                    path=decision.path,
                    groups=decision.matching_groups,
                    newly_registered=added,
                )
                if added:
                    logger.info(
                        f"Registered user {caller.uid} for event {event.id} via {decision.path.value}"
                    )

    repair_group_cache(session, decision.repair)

    if outcome is None:
        logger.warning(f"Registration denied for user {caller.uid} on event {event_id}")
        raise PermissionDenied(DENIED_MESSAGE)
    return outcome


def unregister(session: Session, caller: Caller, event_id: str) -> bool:
    """Remove the caller from the event's attendees. Returns False if they were not one.

    Credentials already issued for the event stop verifying immediately.
    """
    authorize(caller, Operation.REGISTER)
    with store.store_errors("cancelling your registration"):
        if store.get_event(session, event_id) is None:
            raise NotFound("The specified event does not exist.")
        removed = store.remove_attendee(session, event_id, caller.uid)
        session.commit()
    if removed:
        logger.info(f"User {caller.uid} cancelled registration for event {event_id}")
    return removed


def list_upcoming_events(
    session: Session,
    caller: Caller,
    search: str | None = None,
) -> list[Event]:
    authorize(caller, Operation.REGISTER)
    with store.store_errors("loading events"):
        return store.upcoming_events(session, datetime.now(UTC), search=search)


def list_registered_events(session: Session, caller: Caller) -> list[Event]:
    """Events the caller is an attendee of; each one can issue a credential."""
    authorize(caller, Operation.REGISTER)
    with store.store_errors("loading your registrations"):
        return store.registered_events(session, caller.uid)
