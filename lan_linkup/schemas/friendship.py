"""Pydantic schemas for Friendships."""
from datetime import datetime
from pydantic import BaseModel

from lan_linkup.models.friendship import FriendshipStatus
from lan_linkup.schemas.user import UserOut


class FriendRequestCreate(BaseModel):
    addressee_id: int


class FriendRequestOut(BaseModel):
    id: int
    requester_id: int
    addressee_id: int
    status: FriendshipStatus
    created_at: datetime
    updated_at: datetime
    requester: UserOut
    addressee: UserOut

    model_config = {"from_attributes": True}
