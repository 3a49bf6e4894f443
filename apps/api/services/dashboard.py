"""Back-office dashboard statistics."""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.credit_entry import CreditEntry
from models.enums import CreditType, UserStatus
from models.order import Order
from models.user import User
from services.orders import serialize_order
from services.users import serialize_user

RECENT_LIMIT = 5


async def _count(db: AsyncSession, column, *filters) -> int:
    result = await db.execute(select(func.count(column)).where(*filters))
    return int(result.scalar() or 0)


async def _sum_quantity(db: AsyncSession, entry_type: CreditType) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(CreditEntry.quantity), 0)).where(CreditEntry.type == entry_type)
    )
    return int(result.scalar() or 0)


def start_of_day(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Local midnight of ``now`` in the portal timezone, expressed in UTC."""
    local_tz = ZoneInfo(tz_name or settings.TIMEZONE)
    local_now = (now or datetime.now(timezone.utc)).astimezone(local_tz)
    midnight = datetime.combine(local_now.date(), time.min, tzinfo=local_tz)
    return midnight.astimezone(timezone.utc)


async def get_dashboard_stats(db: AsyncSession, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    today = start_of_day(now)

    recent_users = await db.execute(select(User).order_by(User.created_at.desc()).limit(RECENT_LIMIT))
    recent_orders = await db.execute(select(Order).order_by(Order.created_at.desc()).limit(RECENT_LIMIT))

    return {
        "stats": {
            "total_users": await _count(db, User.id),
            "pending_users": await _count(db, User.id, User.status == UserStatus.PENDING),
            "total_orders": await _count(db, Order.id),
            "today_orders": await _count(db, Order.id, Order.created_at >= today),
            "credits_sold": await _sum_quantity(db, CreditType.PURCHASE),
            "credits_used": abs(await _sum_quantity(db, CreditType.USAGE)),
        },
        "recent_users": [serialize_user(user) for user in recent_users.scalars().all()],
        "recent_orders": [serialize_order(order) for order in recent_orders.scalars().all()],
    }
