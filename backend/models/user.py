"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from backend.database import Base


class User(Base):
    """Represents an application user. Only users flagged as providers can be booked."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String)
    provider = Column(Boolean, nullable=False, default=False)
