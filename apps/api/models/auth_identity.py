"""AuthIdentity model: credentials owned by the identity provider."""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base, utcnow


class AuthIdentity(Base):
    """Email/password credential bound to one user id."""

    __tablename__ = "auth_identities"

    user_id = Column(String, ForeignKey("users.id"), primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    user = relationship("User", back_populates="identity")
