"""Credit ledger: balance mutation, pack purchases and history."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.credit_entry import CreditEntry
from models.credit_pack import CreditPack
from models.enums import CreditType
from models.user import User
from services.locale import LocaleContext
from services.payments import PaymentError, PaymentGateway
from services.store_errors import store_failure

logger = logging.getLogger(__name__)


async def get_locked_user(user_id: str, db: AsyncSession) -> Optional[User]:
    """Load a user row for update, bypassing stale identity-map state."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_ledger_balance(user_id: str, db: AsyncSession) -> int:
    """Sum of all ledger quantities for a user."""
    result = await db.execute(
        select(func.coalesce(func.sum(CreditEntry.quantity), 0)).where(CreditEntry.user_id == user_id)
    )
    return int(result.scalar() or 0)


async def apply_credit_delta(
    user_id: str,
    db: AsyncSession,
    *,
    delta: int,
    entry_type: CreditType,
    reason: str,
    description: Optional[str] = None,
    actor_id: Optional[str] = None,
    user: Optional[User] = None,
) -> CreditEntry:
    """Apply ``delta`` to the stored balance and append the matching ledger entry.

    Both writes are flushed into the caller's transaction; the caller commits.
    Negative results are not rejected here. Callers that debit must check the
    balance of the locked row first.
    """
    if user is None:
        user = await get_locked_user(user_id, db)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    current_balance = int(user.credits or 0)
    new_balance = current_balance + int(delta)
    user.credits = new_balance

    entry = CreditEntry(
        user_id=user.id,
        type=entry_type,
        quantity=int(delta),
        balance_after=new_balance,
        reason=reason,
        description=description,
        created_by=actor_id,
    )
    db.add(entry)
    await db.flush()
    logger.info(
        "credit_delta user=%s type=%s delta=%s balance=%s->%s actor=%s",
        user.id,
        entry_type.value,
        delta,
        current_balance,
        new_balance,
        actor_id,
    )
    return entry


async def list_active_credit_packs(db: AsyncSession):
    result = await db.execute(
        select(CreditPack).where(CreditPack.is_active.is_(True)).order_by(CreditPack.price.asc())
    )
    return result.scalars().all()


async def purchase_credit_pack(
    user_id: str,
    pack_id: str,
    db: AsyncSession,
    *,
    gateway: PaymentGateway,
    locale: LocaleContext,
) -> Dict[str, Any]:
    """Confirm payment for a pack, then credit ``credits + bonus_credits``."""
    result = await db.execute(
        select(CreditPack).where(CreditPack.id == pack_id, CreditPack.is_active.is_(True))
    )
    pack = result.scalar_one_or_none()
    if not pack:
        raise HTTPException(status_code=404, detail=locale.t("credits.packNotFound"))

    user = await get_locked_user(user_id, db)
    if user is None:
        raise HTTPException(status_code=404, detail=locale.t("users.notFound"))

    granted = pack.total_credits
    try:
        payment_reference = await gateway.confirm(user_id=user_id, pack=pack)
    except PaymentError as exc:
        await db.rollback()
        logger.warning("credit_purchase payment declined user=%s pack=%s: %s", user_id, pack.id, exc)
        raise HTTPException(status_code=402, detail=locale.t("credits.purchaseError")) from exc

    try:
        entry = await apply_credit_delta(
            user_id,
            db,
            delta=granted,
            entry_type=CreditType.PURCHASE,
            reason=f"Pack purchase {pack.name}",
            description=f"{int(pack.credits)} credits + {int(pack.bonus_credits or 0)} bonus credits",
            user=user,
        )
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(
            db,
            exc,
            event="credit_purchase",
            detail=locale.t("credits.purchaseError"),
            user=user_id,
            pack=pack.id,
        ) from exc

    logger.info(
        "credit_purchase user=%s pack=%s credits=%s ref=%s gateway=%s",
        user_id,
        pack.id,
        granted,
        payment_reference,
        gateway.name,
    )
    return {
        "ok": True,
        "pack_id": pack.id,
        "credits_added": granted,
        "balance_after": entry.balance_after,
        "payment_reference": payment_reference,
        "message": locale.t("credits.purchaseSuccess", credits=granted),
    }


def serialize_credit_entry(entry: CreditEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "type": entry.type.value if entry.type else None,
        "quantity": entry.quantity,
        "balance_after": entry.balance_after,
        "reason": entry.reason,
        "description": entry.description,
        "created_by": entry.created_by,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


async def get_credit_history(user_id: str, db: AsyncSession, *, limit: Optional[int] = None):
    page_size = max(int(limit or settings.CREDIT_HISTORY_LIMIT), 1)
    result = await db.execute(
        select(CreditEntry)
        .where(CreditEntry.user_id == user_id)
        .order_by(CreditEntry.created_at.desc(), CreditEntry.id.desc())
        .limit(page_size)
    )
    return [serialize_credit_entry(entry) for entry in result.scalars().all()]


async def get_credit_summary(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(select(User.credits).where(User.id == user_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise HTTPException(status_code=404, detail="User not found")
    ledger_balance = await get_ledger_balance(user_id, db)
    if ledger_balance != balance:
        logger.warning("credit_ledger_drift user=%s balance=%s ledger=%s", user_id, balance, ledger_balance)
    return {
        "balance": int(balance),
        "ledger_balance": ledger_balance,
        "in_sync": ledger_balance == balance,
        "recent_entries": await get_credit_history(user_id, db),
    }
