"""Error taxonomy shared by the admission services.

Services raise these; the HTTP layer renders them with ``code`` and
``status_code``. Messages are shown to the registrant or to checkpoint
staff, so they name the concrete reason rather than a generic denial.
"""


class AdmissionError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(AdmissionError):
    """No caller identity was presented, or it could not be validated."""

    code = "unauthenticated"
    status_code = 401


class PermissionDenied(AdmissionError):
    """Caller is known but not allowed: wrong role or no eligibility path."""

    code = "permission-denied"
    status_code = 403


class InvalidArgument(AdmissionError):
    code = "invalid-argument"
    status_code = 400


class NotFound(AdmissionError):
    code = "not-found"
    status_code = 404


class Conflict(AdmissionError):
    """Illegal state transition, e.g. deciding an already-decided request."""

    code = "conflict"
    status_code = 409


class Internal(AdmissionError):
    """Unexpected collaborator failure (roster store unavailable)."""

    code = "internal"
    status_code = 500
