from typing import Optional


class PortalError(Exception):
    """Base class for errors surfaced to portal callers as ``{"error": ...}``."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BackendUnavailableError(PortalError):
    """The HR backend could not be reached."""

    status_code = 502
    default_message = "HR backend is unavailable"


class BackendError(PortalError):
    """The HR backend answered with a non-2xx status."""

    status_code = 502
    default_message = "Unknown error"


class SessionExpiredError(PortalError):
    """Credential rejected or missing; the caller must sign in again."""

    status_code = 401
    default_message = "Session expired. Please log in again."
    redirect = "/login"


class ActionNotPermittedError(PortalError):
    status_code = 409
    default_message = "Action is not permitted right now"


class ActionInFlightError(PortalError):
    status_code = 409
    default_message = "Another request is still being processed"


class ValidationFailedError(PortalError):
    status_code = 400
    default_message = "Invalid request"
