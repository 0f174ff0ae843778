from fastapi import HTTPException, status

from studyportal.core.errors import ConflictError, NotFoundError, StudyPortalError, ValidationError


def http_error(exc: StudyPortalError) -> HTTPException:
    """Translate a service error into the matching HTTP response."""
    if isinstance(exc, ConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"reason": exc.reason.value, "message": exc.message},
        )
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
