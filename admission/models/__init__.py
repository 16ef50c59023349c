from admission.models.approval import ApprovalRequest, ApprovalStatus
from admission.models.checkin import CheckIn, SecurityStaff
from admission.models.event import Event, EventAttendee, EventPreApprovedUser
from admission.models.group import EventPreApprovedGroup, Group, GroupMember
from admission.models.user import Role, User

__all__ = [
    "Event",
    "EventAttendee",
    "EventPreApprovedUser",
    "EventPreApprovedGroup",
    "Group",
    "GroupMember",
    "User",
    "Role",
    "ApprovalRequest",
    "ApprovalStatus",
    "CheckIn",
    "SecurityStaff",
]
