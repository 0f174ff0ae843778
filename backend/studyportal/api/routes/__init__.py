from fastapi import APIRouter

from studyportal.api.routes import (
    friend_requests,
    friends,
    study_sessions,
    users,
)


api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(friend_requests.router, prefix="/friend-requests", tags=["friends"])
api_router.include_router(friends.router, prefix="/friends", tags=["friends"])
api_router.include_router(study_sessions.router, prefix="/study-sessions", tags=["study-sessions"])
