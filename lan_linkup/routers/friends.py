"""Friend list routes."""
import logging
from fastapi import APIRouter

from lan_linkup.auth.deps import CurrentUser, DBSession
from lan_linkup.errors import unwrap
from lan_linkup.schemas.common import MessageOut
from lan_linkup.schemas.user import UserOut
from lan_linkup.services import friendship_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[UserOut])
def list_friends(user: CurrentUser, db: DBSession):
    """Accepted friends of the caller, whoever sent the original request."""
    return unwrap(friendship_service.get_friends(db, user.id))


@router.delete("/{friend_id}", response_model=MessageOut)
def remove_friend(friend_id: int, user: CurrentUser, db: DBSession):
    unwrap(friendship_service.remove_friend(db, user.id, friend_id))
    return MessageOut(message="Friend removed")
