"""Closed value sets for roles, statuses and ledger entry types."""

from enum import Enum


class UserRole(str, Enum):
    CLIENT = "client"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def is_admin(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.SUPER_ADMIN)


class UserStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CreditType(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    GIFT = "gift"
    REFUND = "refund"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed user status transitions; approval and rejection are terminal.
USER_STATUS_TRANSITIONS = {
    UserStatus.PENDING: {UserStatus.APPROVED, UserStatus.REJECTED},
    UserStatus.APPROVED: set(),
    UserStatus.REJECTED: set(),
}


def enum_column_values(enum_cls):
    """Persist enum values (not member names) in VARCHAR columns."""
    return [member.value for member in enum_cls]
