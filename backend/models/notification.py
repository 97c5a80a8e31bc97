"""Notification model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String
from backend.database import Base
from backend.models.types import UTCDateTime


class Notification(Base):
    """A message addressed to a user, currently only providers about new bookings."""
    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    content = Column(String, nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=False)
