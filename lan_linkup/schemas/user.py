"""Pydantic schemas for Users and authentication.

No output schema here carries a password or password hash.
"""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from lan_linkup.schemas.common import PartialUpdate


class UserRegister(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)
    bio: str = ""
    location: str = Field(default="", max_length=100)


class UserLogin(BaseModel):
    username: str
    password: str


class UserProfileUpdate(PartialUpdate):
    bio: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=100)


class UserOut(BaseModel):
    id: int
    username: str
    bio: str
    location: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CurrentUserOut(UserOut):
    email: str


class UserStats(BaseModel):
    parties_hosted: int
    parties_attended: int
    friends: int


class UserProfileOut(UserOut):
    stats: UserStats


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUserOut
