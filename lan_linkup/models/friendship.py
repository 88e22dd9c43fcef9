"""Friendship ORM model."""
import enum
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from lan_linkup.database import Base


class FriendshipStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


ACTIVE_PAIR_CONDITION = text("status IN ('pending', 'accepted')")


class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    addressee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # "<lower id>:<higher id>", the same for both directions of a pair
    pair_key = Column(String(41), nullable=False)
    status = Column(SAEnum(FriendshipStatus), nullable=False, default=FriendshipStatus.pending)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    requester = relationship("User", foreign_keys=[requester_id])
    addressee = relationship("User", foreign_keys=[addressee_id])

    # One pending or accepted row per unordered pair; declined rows are history.
    __table_args__ = (
        Index(
            "uq_friendships_active_pair",
            "pair_key",
            unique=True,
            postgresql_where=ACTIVE_PAIR_CONDITION,
            sqlite_where=ACTIVE_PAIR_CONDITION,
        ),
    )

    @staticmethod
    def pair_key_for(user_a: int, user_b: int) -> str:
        low, high = sorted((user_a, user_b))
        return f"{low}:{high}"
