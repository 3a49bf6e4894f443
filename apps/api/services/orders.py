"""Address lookup and order settlement against the credit ledger."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.enums import CreditType, OrderStatus
from models.order import Order
from models.tool import Tool
from services.credits import apply_credit_delta, get_locked_user
from services.locale import LocaleContext
from services.store_errors import store_failure

logger = logging.getLogger(__name__)


async def search_address(address: str, *, locale: LocaleContext) -> Dict[str, Any]:
    """Resolve an address into a parcel summary. Searching is free of charge."""
    query = str(address or "").strip()
    if not query:
        raise HTTPException(status_code=422, detail=locale.t("search.addressRequired"))

    delay = max(float(settings.ADDRESS_LOOKUP_DELAY_SECONDS), 0.0)
    if delay:
        await asyncio.sleep(delay)

    # Parcel registry integration is not wired yet; the lookup returns the placeholder parcel.
    return {
        "address": query,
        "parcel_number": "12345",
        "surface": "850 m²",
        "found": True,
    }


def compute_order_total(tools: Iterable[Tool]) -> int:
    """Sum of tool costs; free tools contribute nothing."""
    return sum(tool.effective_cost for tool in tools)


async def _load_selected_tools(tool_ids: List[str], db: AsyncSession, locale: LocaleContext) -> List[Tool]:
    result = await db.execute(select(Tool).where(Tool.id.in_(tool_ids), Tool.is_active.is_(True)))
    tools = result.scalars().all()
    found = {tool.id for tool in tools}
    missing = [tool_id for tool_id in tool_ids if tool_id not in found]
    if missing:
        raise HTTPException(
            status_code=422,
            detail=locale.t("search.unknownTools", tool_ids=", ".join(missing)),
        )
    return list(tools)


async def place_order(
    user_id: str,
    db: AsyncSession,
    *,
    searched_address: str,
    tool_ids: Iterable[str],
    locale: LocaleContext,
) -> Dict[str, Any]:
    """Charge the user for the selected tools and record the order."""
    address = str(searched_address or "").strip()
    if not address:
        raise HTTPException(status_code=422, detail=locale.t("search.addressRequired"))

    selected: List[str] = []
    for tool_id in tool_ids:
        if tool_id not in selected:
            selected.append(tool_id)
    if not selected:
        raise HTTPException(status_code=422, detail=locale.t("search.noOptionsSelected"))

    tools = await _load_selected_tools(selected, db, locale)
    total_cost = compute_order_total(tools)

    try:
        # Balance check runs against the locked row inside the charging transaction.
        user = await get_locked_user(user_id, db)
        if user is None:
            raise HTTPException(status_code=404, detail=locale.t("users.notFound"))
        balance = int(user.credits or 0)
        if total_cost > balance:
            await db.rollback()
            logger.info(
                "order_rejected insufficient_credits user=%s cost=%s balance=%s",
                user_id,
                total_cost,
                balance,
            )
            raise HTTPException(
                status_code=402,
                detail={
                    "message": locale.t("search.insufficientCredits"),
                    "required": total_cost,
                    "available": balance,
                },
            )

        order = Order(
            user_id=user_id,
            searched_address=address,
            options=selected,
            total_cost=total_cost,
            status=OrderStatus.PENDING,
        )
        db.add(order)
        await db.flush()

        # Every order leaves one usage entry, including all-free selections.
        entry = await apply_credit_delta(
            user_id,
            db,
            delta=-total_cost,
            entry_type=CreditType.USAGE,
            reason=f"Order: {address}",
            user=user,
        )
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="place_order",
            detail=locale.t("search.orderError"),
            user=user_id,
        ) from exc

    logger.info("order_placed user=%s order=%s cost=%s tools=%s", user_id, order.id, total_cost, len(selected))
    return {
        "ok": True,
        "order": serialize_order(order),
        "charged": total_cost,
        "balance_after": entry.balance_after,
        "message": locale.t("search.orderSuccess"),
    }


def serialize_order(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "searched_address": order.searched_address,
        "options": list(order.options or []),
        "total_cost": order.total_cost,
        "status": order.status.value if order.status else None,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }


async def list_orders(user_id: str, db: AsyncSession, *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    page_size = max(int(limit or settings.ORDER_HISTORY_LIMIT), 1)
    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(page_size)
    )
    return [serialize_order(order) for order in result.scalars().all()]
