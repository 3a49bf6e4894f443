"""AdminRoute model for the back-office navigation."""

import uuid

from sqlalchemy import Boolean, Column, Integer, JSON, String

from database import Base


class AdminRoute(Base):
    __tablename__ = "admin_routes"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    path = Column(String, nullable=False)
    label = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    roles = Column(JSON, nullable=False, default=list)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
