"""FastAPI dependencies resolving the caller from the Authorization header."""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from lan_linkup.auth.tokens import read_access_token
from lan_linkup.database import get_db
from lan_linkup.models.user import User

DBSession = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.removeprefix("Bearer ").strip() or None


def get_current_user(request: Request, db: DBSession) -> User:
    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("missing bearer token")
    try:
        user_id = read_access_token(token)
    except ValueError:
        raise _unauthorized("invalid or expired token")

    user = db.get(User, user_id)
    if not user:
        raise _unauthorized("unknown user")
    return user


def get_optional_user(request: Request, db: DBSession) -> Optional[User]:
    """Like get_current_user, but anonymous (or badly authenticated) callers get None."""
    if _bearer_token(request) is None:
        return None
    try:
        return get_current_user(request, db)
    except HTTPException:
        return None


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
