"""Party ORM model."""
import enum
from sqlalchemy import (
    CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from lan_linkup.database import Base


class PartyVisibility(str, enum.Enum):
    public = "public"
    friends = "friends"
    private = "private"


class Party(Base):
    __tablename__ = "parties"
    __table_args__ = (
        CheckConstraint("capacity >= 2", name="ck_parties_capacity_min"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    game = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False)
    location = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)
    visibility = Column(SAEnum(PartyVisibility), nullable=False, default=PartyVisibility.public)
    date = Column(DateTime(timezone=True), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    host_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    host = relationship("User", lazy="joined")
    attendees = relationship("PartyAttendee", back_populates="party", passive_deletes=True)
