from enum import Enum as PyEnum


class StudyPortalError(Exception):
    """Base class for errors raised by the services."""


class ValidationError(StudyPortalError):
    """Malformed input; the operation made no change."""


class NotFoundError(StudyPortalError):
    pass


class ConflictReason(str, PyEnum):
    DUPLICATE_ID = "duplicate_id"
    DUPLICATE_REQUEST = "duplicate_request"
    ALREADY_FRIENDS = "already_friends"
    REQUEST_RESOLVED = "request_resolved"


class ConflictError(StudyPortalError):
    def __init__(self, reason: ConflictReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
