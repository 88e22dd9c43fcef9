"""Registration, login and current-user routes."""
import logging
from fastapi import APIRouter, HTTPException, status

from lan_linkup.auth.deps import CurrentUser, DBSession
from lan_linkup.auth.tokens import create_access_token
from lan_linkup.errors import unwrap
from lan_linkup.schemas.user import CurrentUserOut, TokenOut, UserLogin, UserRegister
from lan_linkup.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _token_for(user) -> TokenOut:
    return TokenOut(
        access_token=create_access_token(user.id),
        user=CurrentUserOut.model_validate(user),
    )


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: DBSession):
    """Create an account and sign it in."""
    user = unwrap(user_service.create_user(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        bio=payload.bio,
        location=payload.location,
    ))
    return _token_for(user)


@router.post("/login", response_model=TokenOut)
def login(payload: UserLogin, db: DBSession):
    result = user_service.authenticate(db, payload.username, payload.password)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _token_for(result.value)


@router.get("/me", response_model=CurrentUserOut)
def me(user: CurrentUser):
    return user
