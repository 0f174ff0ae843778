from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studyportal.api.errors import http_error
from studyportal.core.errors import StudyPortalError
from studyportal.db.session import get_db
from studyportal.models.friend_request import FriendRequestStatus
from studyportal.schemas.friends import (
    FriendRequestCreate,
    FriendRequestPublic,
    FriendRequestUpdate,
)
from studyportal.services import friends as friends_service

router = APIRouter()

RESPONSE_STATUSES = {FriendRequestStatus.ACCEPTED.value, FriendRequestStatus.REJECTED.value}


@router.post("", response_model=FriendRequestPublic, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    payload: FriendRequestCreate,
    db: Session = Depends(get_db),
) -> FriendRequestPublic:
    try:
        return friends_service.send_friend_request(db, payload.sender_id, payload.receiver_id)
    except StudyPortalError as exc:
        raise http_error(exc) from exc


@router.get("/{user_id}", response_model=list[FriendRequestPublic])
def list_friend_requests(
    user_id: str,
    db: Session = Depends(get_db),
) -> list[FriendRequestPublic]:
    return friends_service.list_friend_requests(db, user_id)


@router.put("/{request_id}", response_model=FriendRequestPublic | None)
def respond_to_request(
    request_id: int,
    payload: FriendRequestUpdate,
    db: Session = Depends(get_db),
) -> FriendRequestPublic | None:
    """Accept or reject a request. An unknown id answers ``null``."""
    if payload.status not in RESPONSE_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    try:
        return friends_service.respond_to_request(
            db, request_id, FriendRequestStatus(payload.status)
        )
    except StudyPortalError as exc:
        raise http_error(exc) from exc
