"""Translation model for admin-managed UI strings."""

import uuid

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from database import Base, utcnow


class Translation(Base):
    __tablename__ = "translations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String, unique=True, nullable=False, index=True)
    fr = Column(Text, nullable=False)
    de = Column(Text, nullable=True)
    it = Column(Text, nullable=True)
    en = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
