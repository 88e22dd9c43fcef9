"""User ORM model."""
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from lan_linkup.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    bio = Column(Text, nullable=False, default="")
    location = Column(String(100), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
