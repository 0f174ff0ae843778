from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from studyportal.api.errors import http_error
from studyportal.core.errors import ConflictError, NotFoundError
from studyportal.db.session import get_db
from studyportal.schemas.user import UserCreate, UserPublic
from studyportal.services import friends as friends_service

router = APIRouter()


@router.post("", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def create_or_update_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
) -> UserPublic:
    try:
        return friends_service.create_or_update_user(db, payload.user_id, payload.name)
    except ConflictError as exc:
        raise http_error(exc) from exc


@router.get("/search", response_model=list[UserPublic])
def search_users(
    q: str = Query(default=""),
    db: Session = Depends(get_db),
) -> list[UserPublic]:
    if not q:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required"
        )
    return friends_service.search_users(db, q)


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: str, db: Session = Depends(get_db)) -> UserPublic:
    try:
        return friends_service.require_user(db, user_id)
    except NotFoundError as exc:
        raise http_error(exc) from exc
