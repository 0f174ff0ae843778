from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studyportal.db.session import db_lock, get_db
from studyportal.schemas.friends import FriendRemoval, FriendshipPublic
from studyportal.schemas.study_session import StudySessionGroups
from studyportal.services import friends as friends_service
from studyportal.services.schedules import open_schedule

router = APIRouter()


@router.get("/{user_id}", response_model=list[FriendshipPublic])
def list_friends(user_id: str, db: Session = Depends(get_db)) -> list[FriendshipPublic]:
    return friends_service.list_friends(db, user_id)


@router.delete("/{user_id}/{friend_id}", response_model=FriendRemoval)
def remove_friend(
    user_id: str,
    friend_id: str,
    db: Session = Depends(get_db),
) -> FriendRemoval:
    return FriendRemoval(removed=friends_service.remove_friend(db, user_id, friend_id))


@router.get("/{friend_id}/schedule", response_model=StudySessionGroups)
def get_friend_schedule(friend_id: str, db: Session = Depends(get_db)) -> StudySessionGroups:
    """Read-only view of a friend's schedule; clients poll it."""
    with db_lock:
        return open_schedule(db, friend_id).groups()
