"""Errors raised by session operations."""


class SessionError(Exception):
    """Base error for rejected session operations."""

    status_code = 500
    code = "session_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SessionError):
    """The session or device does not exist for the caller."""

    status_code = 404
    code = "not_found"


class ForbiddenError(SessionError):
    """The caller does not own the session."""

    status_code = 403
    code = "forbidden"


class ConflictError(SessionError):
    """An active session already exists for the device and service."""

    status_code = 409
    code = "conflict"


class InvalidArgumentError(SessionError):
    """The request names an unknown method or an unusable option."""

    status_code = 400
    code = "invalid_argument"


class InvalidStateError(SessionError):
    """The operation is not legal for the session's current status."""

    status_code = 400
    code = "invalid_state"
