from pydantic import Field

from studyportal.models.friend_request import FriendRequestStatus
from studyportal.schemas.common import CamelModel, TimestampedModel


class FriendRequestCreate(CamelModel):
    sender_id: str = Field(..., min_length=1)
    receiver_id: str = Field(..., min_length=1)


class FriendRequestUpdate(CamelModel):
    status: str


class FriendRequestPublic(TimestampedModel):
    id: int
    sender_id: str
    receiver_id: str
    status: FriendRequestStatus
    sender_name: str | None = None


class FriendshipPublic(TimestampedModel):
    id: int
    user_id: str
    friend_id: str
    friend_name: str | None = None


class FriendRemoval(CamelModel):
    removed: bool
