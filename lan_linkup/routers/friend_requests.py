"""Friend request routes — send, list, accept, decline."""
import logging
from fastapi import APIRouter, status

from lan_linkup.auth.deps import CurrentUser, DBSession
from lan_linkup.errors import unwrap
from lan_linkup.schemas.friendship import FriendRequestCreate, FriendRequestOut
from lan_linkup.services import friendship_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[FriendRequestOut])
def incoming_requests(user: CurrentUser, db: DBSession):
    """Pending requests addressed to the caller."""
    return unwrap(friendship_service.get_friend_requests(db, user.id))


@router.get("/sent", response_model=list[FriendRequestOut])
def sent_requests(user: CurrentUser, db: DBSession):
    """Pending requests the caller has sent."""
    return unwrap(friendship_service.get_sent_friend_requests(db, user.id))


@router.post("", response_model=FriendRequestOut, status_code=status.HTTP_201_CREATED)
def send_request(payload: FriendRequestCreate, user: CurrentUser, db: DBSession):
    return unwrap(friendship_service.send_friend_request(db, user.id, payload.addressee_id))


@router.post("/{request_id}/accept", response_model=FriendRequestOut)
def accept_request(request_id: int, user: CurrentUser, db: DBSession):
    """Accept a pending request (addressee only)."""
    return unwrap(friendship_service.accept_friend_request(db, request_id, user.id))


@router.post("/{request_id}/decline", response_model=FriendRequestOut)
def decline_request(request_id: int, user: CurrentUser, db: DBSession):
    """Decline a pending request (addressee only)."""
    return unwrap(friendship_service.decline_friend_request(db, request_id, user.id))
