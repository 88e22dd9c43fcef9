"""User profile and search routes."""
import logging
from fastapi import APIRouter, HTTPException, Query, status

from lan_linkup.auth.deps import CurrentUser, DBSession
from lan_linkup.errors import unwrap
from lan_linkup.schemas.user import UserOut, UserProfileOut, UserProfileUpdate, UserStats
from lan_linkup.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/search", response_model=list[UserOut])
def search_users(user: CurrentUser, db: DBSession, q: str = Query(..., min_length=1)):
    """Username / email substring search, excluding the caller."""
    return unwrap(user_service.search_users(db, q.strip() or q, excluding_user_id=user.id))


@router.get("/{user_id}", response_model=UserProfileOut)
def get_user(user_id: int, db: DBSession):
    """Public profile with hosting / attendance / friend counts."""
    profile = unwrap(user_service.get_user_profile(db, user_id))
    return UserProfileOut(
        **UserOut.model_validate(profile.user).model_dump(),
        stats=UserStats(
            parties_hosted=profile.parties_hosted,
            parties_attended=profile.parties_attended,
            friends=profile.friends,
        ),
    )


@router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserProfileUpdate, user: CurrentUser, db: DBSession):
    """Update bio / location of the caller's own profile."""
    if user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to edit this profile")
    return unwrap(user_service.update_profile(db, user_id, payload.changes()))
