"""Signed bearer tokens identifying a user."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt import PyJWTError

from lan_linkup.config import settings


def create_access_token(user_id: int, ttl_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=ttl_minutes or settings.ACCESS_TOKEN_TTL_MINUTES)
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def read_access_token(token: str) -> int:
    """Return the user id carried by ``token``; raises ValueError if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return int(payload["sub"])
    except (PyJWTError, KeyError, ValueError) as exc:
        raise ValueError("invalid access token") from exc
