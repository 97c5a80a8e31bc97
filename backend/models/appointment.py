"""Appointment model definitions."""

from datetime import timedelta

from sqlalchemy import Column, ForeignKey, Index, Integer, text
from sqlalchemy.orm import relationship

from backend.core.clock import is_before
from backend.database import Base
from backend.models.types import UTCDateTime
from backend.models.user import User

CANCELLATION_WINDOW = timedelta(hours=2)


class Appointment(Base):
    """A client's booking of one provider hour."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_provider_slot_active",
            "provider_id",
            "scheduled_for",
            unique=True,
            sqlite_where=text("canceled_at IS NULL"),
            postgresql_where=text("canceled_at IS NULL"),
        ),
        Index("idx_appointments_client_schedule", "client_id", "scheduled_for"),
    )

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    scheduled_for = Column(UTCDateTime, nullable=False)
    canceled_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False)

    client = relationship(User, foreign_keys=[client_id], lazy="raise")
    provider = relationship(User, foreign_keys=[provider_id], lazy="raise")

    def is_past(self, now) -> bool:
        return is_before(self.scheduled_for, now)

    def is_cancelable(self, now) -> bool:
        return self.canceled_at is None and is_before(now, self.scheduled_for - CANCELLATION_WINDOW)
