"""Checkpoint verification and the check-in log.

Verification runs its checks cheapest first and stops at the first failure:

    1. token decodes                  -> "Invalid QR code format"
    2. token's event == expected      -> "QR code is for a different event"
    3. event exists                   -> "Event not found"
    4. user is an attendee            -> "User is not registered for this event"
    5. user profile exists            -> "User not found"

On success a CheckIn row is appended and the scanning staff member's
counter is incremented in the same commit. Repeat scans of the same
credential are accepted and logged again unless a dedupe window is
configured.
"""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlmodel import Session, select

from admission.core.config import settings
from admission.core.errors import InvalidArgument, NotFound, PermissionDenied
from admission.core.security import Caller
from admission.credentials.codec import (
    CredentialCodec,
    FormatError,
    encode_credential,
    get_codec,
)
from admission.models import CheckIn
from admission.roster import store
from admission.services.permissions import Operation, authorize

logger = logging.getLogger(__name__)

INVALID_FORMAT = "Invalid QR code format"
DIFFERENT_EVENT = "QR code is for a different event"
EVENT_NOT_FOUND = "Event not found"
NOT_REGISTERED = "User is not registered for this event"
USER_NOT_FOUND = "User not found"
ALREADY_CHECKED_IN = "Credential already checked in"
VERIFIED_MESSAGE = "Attendance verified successfully"


@dataclass
class AttendeeIdentity:
    user_id: str
    display_name: str
    photo_url: str
    email: str


@dataclass
class VerificationOutcome:
    valid: bool
    reason: str | None = None
    user: AttendeeIdentity | None = None
    message: str | None = None

    @classmethod
    def invalid(cls, reason: str) -> "VerificationOutcome":
        return cls(valid=False, reason=reason)


def verify(
    session: Session,
    caller: Caller,
    encoded_data: str | None,
    expected_event_id: str | None,
    codec: CredentialCodec | None = None,
    dedupe_window: timedelta | None = None,
) -> VerificationOutcome:
    """Validate a scanned credential against the live roster and log the check-in.

    Args:
        session: Roster session.
        caller: Scanning staff member; must be security staff or admin.
        encoded_data: The credential read from the QR code.
        expected_event_id: Event the checkpoint is admitting to.
        codec: Credential codec; defaults to the configured one.
        dedupe_window: If set, a repeat scan of the same attendee by the same
            staff member within the window is rejected instead of logged.
            Defaults to ``CHECKIN_DEDUPE_WINDOW_SECONDS`` (0 disables it).

    Raises:
        PermissionDenied: caller is neither security staff nor admin.
        InvalidArgument: a required input is missing.
    """
    authorize(caller, Operation.VERIFY_CHECK_IN)
    if not encoded_data or not expected_event_id:
        raise InvalidArgument("Required parameters: encodedData, eventId")

    codec = codec or get_codec()
    if dedupe_window is None and settings.checkin_dedupe_window_seconds > 0:
        dedupe_window = timedelta(seconds=settings.checkin_dedupe_window_seconds)

    try:
        credential = codec.decode(encoded_data)
    except FormatError as e:
        logger.info(f"Rejected credential from staff {caller.uid}: {e}")
        return VerificationOutcome.invalid(INVALID_FORMAT)

    if credential.event_id != expected_event_id:
        return VerificationOutcome.invalid(DIFFERENT_EVENT)

    with store.store_errors("verifying the QR code"):
        event = store.get_event(session, credential.event_id)
        if event is None:
            return VerificationOutcome.invalid(EVENT_NOT_FOUND)

        if not store.is_attendee(session, event.id, credential.user_id):
            return VerificationOutcome.invalid(NOT_REGISTERED)

        user = store.get_user(session, credential.user_id)
        if user is None:
            return VerificationOutcome.invalid(USER_NOT_FOUND)

        now = datetime.now(UTC)
        if dedupe_window:
            recent = store.recent_check_in(
                session, event.id, user.id, caller.uid, since=now - dedupe_window
            )
            if recent is not None:
                return VerificationOutcome.invalid(ALREADY_CHECKED_IN)

        identity = AttendeeIdentity(
            user_id=credential.user_id,
            display_name=user.display_name or "Unknown User",
            photo_url=user.photo_url or "",
            email=user.email or "",
        )
        session.add(
            CheckIn(
                event_id=event.id,
                user_id=identity.user_id,
                staff_id=caller.uid,
                checked_in_at=now,
                display_name=identity.display_name,
                photo_url=identity.photo_url,
            )
        )
        store.record_scan(session, caller.uid, now)
        session.commit()

    logger.info(
        f"Checked in user {identity.user_id} to event {credential.event_id} by staff {caller.uid}"
    )
    return VerificationOutcome(valid=True, user=identity, message=VERIFIED_MESSAGE)


def issue_credential(session: Session, caller: Caller, event_id: str) -> str:
    """Produce the caller's credential for an event they are registered for."""
    authorize(caller, Operation.ISSUE_CREDENTIAL)
    with store.store_errors("issuing your QR code"):
        event = store.get_event(session, event_id)
        if event is None:
            raise NotFound("The specified event does not exist.")
        if not store.is_attendee(session, event.id, caller.uid):
            raise PermissionDenied("You are not registered for this event")
    return encode_credential(caller.uid, event_id)


def list_check_ins(
    session: Session,
    caller: Caller,
    event_id: str,
    unique: bool = False,
) -> list[CheckIn]:
    """The event's check-in log, newest first.

    With ``unique`` only the most recent record per attendee is kept, which
    gives a single-entry attendance list despite repeat scans.
    """
    authorize(caller, Operation.VIEW_CHECK_INS)
    with store.store_errors("loading check-ins"):
        if store.get_event(session, event_id) is None:
            raise NotFound("The specified event does not exist.")
        statement = (
            select(CheckIn)
            .where(CheckIn.event_id == event_id)
            .order_by(CheckIn.checked_in_at.desc())
        )
        records = list(session.exec(statement).all())

    if not unique:
        return records
    seen = set()
    latest = []
    for record in records:
        if record.user_id not in seen:
            seen.add(record.user_id)
            latest.append(record)
    return latest
