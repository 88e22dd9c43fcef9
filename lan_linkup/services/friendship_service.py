"""Friend requests and the friend graph.

A request is directed (requester → addressee) while pending; once accepted it
counts as a friendship for both users. Only one pending or accepted row may
exist per unordered pair, backed by a partial unique index on ``pair_key``;
declined rows are kept as history and do not block a new request.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lan_linkup.models.friendship import Friendship, FriendshipStatus
from lan_linkup.models.user import User
from lan_linkup.services.result import Failure, Result

logger = logging.getLogger(__name__)

PENDING_MESSAGE = "A friend request between you is already pending"


def _between(user_a: int, user_b: int):
    return or_(
        and_(Friendship.requester_id == user_a, Friendship.addressee_id == user_b),
        and_(Friendship.requester_id == user_b, Friendship.addressee_id == user_a),
    )


def _pending_between(db: Session, user_a: int, user_b: int) -> Optional[Friendship]:
    return db.query(Friendship).filter(
        _between(user_a, user_b),
        Friendship.status == FriendshipStatus.pending,
    ).first()


def send_friend_request(db: Session, requester_id: int, addressee_id: int) -> Result[Friendship]:
    if requester_id == addressee_id:
        return Result.fail(Failure.invalid, "Cannot send a friend request to yourself")
    if not db.get(User, addressee_id):
        return Result.fail(Failure.not_found, "User not found")

    if are_friends(db, requester_id, addressee_id):
        return Result.fail(Failure.conflict, "You are already friends")
    if _pending_between(db, requester_id, addressee_id):
        return Result.fail(Failure.conflict, PENDING_MESSAGE)

    friendship = Friendship(
        requester_id=requester_id,
        addressee_id=addressee_id,
        pair_key=Friendship.pair_key_for(requester_id, addressee_id),
        status=FriendshipStatus.pending,
    )
    db.add(friendship)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a request for the same pair.
        db.rollback()
        return Result.fail(Failure.conflict, PENDING_MESSAGE)
    db.refresh(friendship)
    logger.info("Friend request %s sent from user %s to user %s", friendship.id, requester_id, addressee_id)
    return Result.success(friendship)


def _pending_for_addressee(db: Session, request_id: int, actor_id: int) -> Result[Friendship]:
    friendship = db.get(Friendship, request_id)
    if not friendship:
        return Result.fail(Failure.not_found, "Friend request not found")
    if friendship.addressee_id != actor_id:
        return Result.fail(Failure.forbidden, "Only the recipient may respond to this friend request")
    if friendship.status != FriendshipStatus.pending:
        return Result.fail(Failure.conflict, f"Friend request is already {friendship.status.value}")
    return Result.success(friendship)


def _resolve(db: Session, request_id: int, actor_id: int, new_status: FriendshipStatus) -> Result[Friendship]:
    found = _pending_for_addressee(db, request_id, actor_id)
    if not found.ok:
        return found

    friendship = found.value
    friendship.status = new_status
    friendship.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(friendship)
    logger.info("Friend request %s %s by user %s", request_id, new_status.value, actor_id)
    return Result.success(friendship)


def accept_friend_request(db: Session, request_id: int, actor_id: int) -> Result[Friendship]:
    return _resolve(db, request_id, actor_id, FriendshipStatus.accepted)


def decline_friend_request(db: Session, request_id: int, actor_id: int) -> Result[Friendship]:
    return _resolve(db, request_id, actor_id, FriendshipStatus.declined)


def remove_friend(db: Session, user_id: int, friend_id: int) -> Result[None]:
    """Either side may end an accepted friendship."""
    friendship = db.query(Friendship).filter(
        _between(user_id, friend_id),
        Friendship.status == FriendshipStatus.accepted,
    ).first()
    if not friendship:
        return Result.fail(Failure.not_found, "You are not friends with this user")

    db.delete(friendship)
    db.commit()
    logger.info("User %s removed friend %s", user_id, friend_id)
    return Result.success()


def get_friends(db: Session, user_id: int) -> Result[list[User]]:
    """Users on the other end of every accepted friendship touching ``user_id``."""
    rows = db.query(Friendship).filter(
        Friendship.status == FriendshipStatus.accepted,
        or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
    ).all()
    friend_ids = [
        row.addressee_id if row.requester_id == user_id else row.requester_id
        for row in rows
    ]
    if not friend_ids:
        return Result.success([])
    friends = db.query(User).filter(User.id.in_(friend_ids)).order_by(User.username).all()
    return Result.success(friends)


def get_friend_ids(db: Session, user_id: int) -> set[int]:
    return {user.id for user in get_friends(db, user_id).value}


def get_friend_requests(db: Session, user_id: int) -> Result[list[Friendship]]:
    """Pending requests addressed to ``user_id``."""
    requests = db.query(Friendship).filter(
        Friendship.addressee_id == user_id,
        Friendship.status == FriendshipStatus.pending,
    ).order_by(Friendship.created_at.desc(), Friendship.id.desc()).all()
    return Result.success(requests)


def get_sent_friend_requests(db: Session, user_id: int) -> Result[list[Friendship]]:
    """Pending requests sent by ``user_id``."""
    requests = db.query(Friendship).filter(
        Friendship.requester_id == user_id,
        Friendship.status == FriendshipStatus.pending,
    ).order_by(Friendship.created_at.desc(), Friendship.id.desc()).all()
    return Result.success(requests)


def are_friends(db: Session, user_a: int, user_b: int) -> bool:
    return db.query(Friendship.id).filter(
        _between(user_a, user_b),
        Friendship.status == FriendshipStatus.accepted,
    ).first() is not None
