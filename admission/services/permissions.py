"""The single place that maps a caller's role to what it may do."""
from enum import Enum

from admission.core.errors import PermissionDenied
from admission.core.security import Caller
from admission.models import Role


class Operation(str, Enum):
    REGISTER = "register"
    ISSUE_CREDENTIAL = "issue_credential"
    REQUEST_APPROVAL = "request_approval"
    CANCEL_APPROVAL = "cancel_approval"
    DECIDE_APPROVAL = "decide_approval"
    LIST_APPROVALS = "list_approvals"
    VERIFY_CHECK_IN = "verify_check_in"
    VIEW_CHECK_INS = "view_check_ins"
    MANAGE_ROSTER = "manage_roster"
    MANAGE_ROLES = "manage_roles"
    EDIT_OWN_PROFILE = "edit_own_profile"


_REGISTRANT = frozenset(
    {
        Operation.REGISTER,
        Operation.ISSUE_CREDENTIAL,
        Operation.REQUEST_APPROVAL,
        Operation.CANCEL_APPROVAL,
        Operation.EDIT_OWN_PROFILE,
    }
)
_CHECKPOINT = frozenset({Operation.VERIFY_CHECK_IN, Operation.VIEW_CHECK_INS})

PERMISSIONS: dict[Role, frozenset[Operation]] = {
    Role.USER: _REGISTRANT,
    Role.SECURITY: _REGISTRANT | _CHECKPOINT,
    Role.ADMIN: frozenset(Operation),
}

_DENIAL_MESSAGES = {
    Operation.DECIDE_APPROVAL: "Only admins can decide approval requests",
    Operation.LIST_APPROVALS: "Only admins can review approval requests",
    Operation.VERIFY_CHECK_IN: "Only security staff can verify QR codes",
    Operation.VIEW_CHECK_INS: "Only security staff can view check-ins",
    Operation.MANAGE_ROSTER: "Only admins can manage events and groups",
    Operation.MANAGE_ROLES: "Only admins can change roles",
}


def can(caller: Caller, operation: Operation) -> bool:
    return operation in PERMISSIONS.get(caller.role, frozenset())


def authorize(caller: Caller, operation: Operation) -> None:
    """Raise PermissionDenied unless the caller's role permits ``operation``."""
    if not can(caller, operation):
        raise PermissionDenied(
            _DENIAL_MESSAGES.get(operation, "You do not have permission to perform this action")
        )
