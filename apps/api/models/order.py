"""Order model for address lookups paid with credits."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base, utcnow
from models.enums import OrderStatus, enum_column_values


class Order(Base):
    """One search-and-order transaction."""

    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    searched_address = Column(String, nullable=False)
    options = Column(JSON, nullable=False, default=list)  # selected tool ids
    total_cost = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(OrderStatus, native_enum=False, length=32, values_callable=enum_column_values),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    user = relationship("User", back_populates="orders")
