"""CreditPack model: purchasable credit bundles."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from database import Base, utcnow


class CreditPack(Base):
    __tablename__ = "credit_packs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    credits = Column(Integer, nullable=False)
    bonus_credits = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False)  # CHF
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    @property
    def total_credits(self) -> int:
        return int(self.credits or 0) + int(self.bonus_credits or 0)
