"""PartyAttendee ORM model — join table between users and parties."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from lan_linkup.database import Base


class PartyAttendee(Base):
    __tablename__ = "party_attendees"
    __table_args__ = (
        UniqueConstraint("party_id", "user_id", name="uq_party_attendees_party_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    party = relationship("Party", back_populates="attendees")
    user = relationship("User")
