"""CreditEntry model: the append-only credit ledger."""

import uuid

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base, utcnow
from models.enums import CreditType, enum_column_values


class CreditEntry(Base):
    """Immutable credit ledger entry."""

    __tablename__ = "credits"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(
        Enum(CreditType, native_enum=False, length=32, values_callable=enum_column_values),
        nullable=False,
        index=True,
    )
    quantity = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=True)
    reason = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    user = relationship("User", back_populates="credit_entries", foreign_keys=[user_id])
