"""User accounts, profiles and search."""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lan_linkup.auth.password import hash_password, verify_password
from lan_linkup.config import settings
from lan_linkup.models.attendee import PartyAttendee
from lan_linkup.models.friendship import Friendship, FriendshipStatus
from lan_linkup.models.party import Party
from lan_linkup.models.user import User
from lan_linkup.services.result import Failure, Result
from lan_linkup.services.search import icontains_any

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("bio", "location")


@dataclass(frozen=True)
class UserProfile:
    user: User
    parties_hosted: int
    parties_attended: int
    friends: int


def _username_or_email_taken(db: Session, username: str, email: str) -> bool:
    return db.query(User.id).filter(
        or_(
            func.lower(User.username) == username.lower(),
            func.lower(User.email) == email.lower(),
        )
    ).first() is not None


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    bio: str = "",
    location: str = "",
) -> Result[User]:
    if _username_or_email_taken(db, username, email):
        return Result.fail(Failure.conflict, "Username or email already registered")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        bio=bio,
        location=location,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return Result.fail(Failure.conflict, "Username or email already registered")
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return Result.success(user)


def authenticate(db: Session, username: str, password: str) -> Result[User]:
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        return Result.fail(Failure.invalid, "Invalid username or password")
    return Result.success(user)


def get_user(db: Session, user_id: int) -> Result[User]:
    user = db.get(User, user_id)
    if not user:
        return Result.fail(Failure.not_found, "User not found")
    return Result.success(user)


def count_friends(db: Session, user_id: int) -> int:
    return db.query(func.count(Friendship.id)).filter(
        Friendship.status == FriendshipStatus.accepted,
        or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
    ).scalar() or 0


def get_user_profile(db: Session, user_id: int) -> Result[UserProfile]:
    """Profile with hosted / attended / friend counts."""
    user = db.get(User, user_id)
    if not user:
        return Result.fail(Failure.not_found, "User not found")

    hosted = db.query(func.count(Party.id)).filter(Party.host_id == user_id).scalar() or 0
    attended = db.query(func.count(PartyAttendee.id)).filter(PartyAttendee.user_id == user_id).scalar() or 0
    return Result.success(UserProfile(
        user=user,
        parties_hosted=hosted,
        parties_attended=attended,
        friends=count_friends(db, user_id),
    ))


def update_profile(db: Session, user_id: int, changes: dict[str, Any]) -> Result[User]:
    """Only bio and location are editable; anything else in ``changes`` is ignored."""
    user = db.get(User, user_id)
    if not user:
        return Result.fail(Failure.not_found, "User not found")

    for field in PROFILE_FIELDS:
        if field in changes:
            setattr(user, field, changes[field])
    db.commit()
    db.refresh(user)
    logger.info("Updated profile of user %s", user_id)
    return Result.success(user)


def search_users(
    db: Session,
    query: str,
    excluding_user_id: int,
    limit: Optional[int] = None,
) -> Result[list[User]]:
    users = (
        db.query(User)
        .filter(icontains_any(query, User.username, User.email), User.id != excluding_user_id)
        .order_by(User.username)
        .limit(limit or settings.USER_SEARCH_LIMIT)
        .all()
    )
    return Result.success(users)
