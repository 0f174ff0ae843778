from studyportal.models.user import User
from studyportal.models.friend_request import FriendRequest, FriendRequestStatus
from studyportal.models.friendship import Friendship
from studyportal.models.key_value_entry import KeyValueEntry

__all__ = [
    "User",
    "FriendRequest",
    "FriendRequestStatus",
    "Friendship",
    "KeyValueEntry",
]
