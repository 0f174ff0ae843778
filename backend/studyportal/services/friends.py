"""Friends directory: users, friend requests and friendships.

Friendships are stored as two directed edges (A->B and B->A) that are
created and removed together. Identity is whatever ``user_id`` the caller
supplies; nothing here authenticates it.
"""
from __future__ import annotations

import logging
import secrets
import string
import time

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studyportal.core.errors import (
    ConflictError,
    ConflictReason,
    NotFoundError,
    ValidationError,
)
from studyportal.db.session import db_lock
from studyportal.models.friend_request import FriendRequest, FriendRequestStatus
from studyportal.models.friendship import Friendship
from studyportal.models.user import User
from studyportal.schemas.friends import FriendRequestPublic, FriendshipPublic

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def generate_user_id() -> str:
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


def _display_name(db: Session, user_id: str) -> str:
    user = get_user(db, user_id)
    return user.name if user else UNKNOWN_NAME


def _edges_between(db: Session, user_id: str, friend_id: str):
    return db.query(Friendship).filter(
        or_(
            and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
            and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
        )
    )


def are_friends(db: Session, user_id: str, friend_id: str) -> bool:
    with db_lock:
        return _edges_between(db, user_id, friend_id).first() is not None


# -- users -----------------------------------------------------------------


def get_user(db: Session, user_id: str) -> User | None:
    with db_lock:
        return db.query(User).filter(User.user_id == user_id).first()


def require_user(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def create_or_update_user(db: Session, user_id: str | None, name: str) -> User:
    """Create the user, or rename it when ``user_id`` is already known."""
    with db_lock:
        user_id = user_id or generate_user_id()
        user = get_user(db, user_id)
        if user is not None:
            user.name = name
            db.add(user)
            db.commit()
            db.refresh(user)
            return user

        user = User(user_id=user_id, name=name)
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError(
                ConflictReason.DUPLICATE_ID,
                "This ID is already taken, please choose another one",
            ) from exc
        db.refresh(user)
        logger.info(f"Registered user {user_id}")
        return user


def search_users(db: Session, query: str) -> list[User]:
    # instr() rather than LIKE, which ignores case on SQLite.
    with db_lock:
        return (
            db.query(User)
            .filter(func.instr(User.user_id, query) > 0)
            .order_by(User.id)
            .all()
        )


# -- friend requests -------------------------------------------------------


def send_friend_request(db: Session, sender_id: str, receiver_id: str) -> FriendRequest:
    if sender_id == receiver_id:
        raise ValidationError("Cannot send a friend request to yourself")

    with db_lock:
        pending = (
            db.query(FriendRequest)
            .filter(
                FriendRequest.sender_id == sender_id,
                FriendRequest.receiver_id == receiver_id,
                FriendRequest.status == FriendRequestStatus.PENDING,
            )
            .first()
        )
        if pending is not None:
            raise ConflictError(
                ConflictReason.DUPLICATE_REQUEST, "Friend request already exists"
            )
        if are_friends(db, sender_id, receiver_id):
            raise ConflictError(ConflictReason.ALREADY_FRIENDS, "Users are already friends")

        request = FriendRequest(
            sender_id=sender_id,
            receiver_id=receiver_id,
            status=FriendRequestStatus.PENDING,
        )
        db.add(request)
        db.commit()
        db.refresh(request)
        logger.info(f"Friend request {request.id}: {sender_id} -> {receiver_id}")
        return request


def respond_to_request(
    db: Session, request_id: int, status: FriendRequestStatus
) -> FriendRequest | None:
    """Accept or reject a pending request.

    Returns ``None`` for an unknown id. Accepting writes both friendship
    edges in the same commit as the status change.
    """
    if status == FriendRequestStatus.PENDING:
        raise ValidationError("Status must be accepted or rejected")

    with db_lock:
        request = db.get(FriendRequest, request_id)
        if request is None:
            return None
        if request.status != FriendRequestStatus.PENDING:
            raise ConflictError(
                ConflictReason.REQUEST_RESOLVED,
                f"Friend request was already {request.status.value}",
            )

        request.status = status
        db.add(request)
        # A crossing request may already have connected the pair.
        if status == FriendRequestStatus.ACCEPTED and not are_friends(
            db, request.sender_id, request.receiver_id
        ):
            db.add_all(
                [
                    Friendship(user_id=request.sender_id, friend_id=request.receiver_id),
                    Friendship(user_id=request.receiver_id, friend_id=request.sender_id),
                ]
            )
        db.commit()
        db.refresh(request)
        logger.info(f"Friend request {request.id} {status.value}")
        return request


def list_friend_requests(db: Session, user_id: str) -> list[FriendRequestPublic]:
    with db_lock:
        requests = (
            db.query(FriendRequest)
            .filter(
                FriendRequest.receiver_id == user_id,
                FriendRequest.status == FriendRequestStatus.PENDING,
            )
            .order_by(FriendRequest.id)
            .all()
        )
        return [
            FriendRequestPublic(
                id=request.id,
                sender_id=request.sender_id,
                receiver_id=request.receiver_id,
                status=request.status,
                created_at=request.created_at,
                sender_name=_display_name(db, request.sender_id),
            )
            for request in requests
        ]


# -- friendships -----------------------------------------------------------


def list_friends(db: Session, user_id: str) -> list[FriendshipPublic]:
    with db_lock:
        edges = (
            db.query(Friendship)
            .filter(Friendship.user_id == user_id)
            .order_by(Friendship.id)
            .all()
        )
        return [
            FriendshipPublic(
                id=edge.id,
                user_id=edge.user_id,
                friend_id=edge.friend_id,
                created_at=edge.created_at,
                friend_name=_display_name(db, edge.friend_id),
            )
            for edge in edges
        ]


def remove_friend(db: Session, user_id: str, friend_id: str) -> bool:
    with db_lock:
        deleted = _edges_between(db, user_id, friend_id).delete(synchronize_session=False)
        db.commit()
    if deleted:
        logger.info(f"Removed friendship {user_id} <-> {friend_id}")
    return bool(deleted)
