"""User model."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base, utcnow
from models.enums import UserRole, UserStatus, enum_column_values


class User(Base):
    """Portal account: profile, role, approval status and credit balance."""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    company = Column(String, nullable=True)
    address = Column(String, nullable=True)
    role = Column(
        Enum(UserRole, native_enum=False, length=32, values_callable=enum_column_values),
        nullable=False,
        default=UserRole.CLIENT,
    )
    status = Column(
        Enum(UserStatus, native_enum=False, length=32, values_callable=enum_column_values),
        nullable=False,
        default=UserStatus.PENDING,
        index=True,
    )
    credits = Column(Integer, nullable=False, default=0)
    validated = Column(Boolean, nullable=False, default=False)
    welcome_bonus_granted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    # Relationships
    credit_entries = relationship("CreditEntry", back_populates="user", foreign_keys="CreditEntry.user_id")
    orders = relationship("Order", back_populates="user")
    identity = relationship("AuthIdentity", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
