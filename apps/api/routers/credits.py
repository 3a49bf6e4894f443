"""Credit balance, ledger history and credit pack purchases."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_locale_context, require_approved
from routers.rate_limit import rate_limit
from services.credits import get_credit_history, get_credit_summary, purchase_credit_pack
from services.locale import LocaleContext
from services.payments import PaymentGateway, get_payment_gateway

router = APIRouter()


class PurchaseRequest(BaseModel):
    pack_id: str
    user_id: Optional[str] = None


@router.get("")
async def credits_summary(
    user_id: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await get_credit_summary(scoped_user_id, db)


@router.get("/history")
async def credit_history(
    limit: int = Query(default=10, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return {"items": await get_credit_history(auth.user_id, db, limit=limit)}


@router.post("/purchase")
async def purchase(
    request: PurchaseRequest,
    _rate_limit: None = Depends(rate_limit("credits_purchase", limit=20, window_seconds=3600)),
    auth: AuthContext = Depends(require_approved),
    locale: LocaleContext = Depends(get_locale_context),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, request.user_id)
    return await purchase_credit_pack(scoped_user_id, request.pack_id, db, gateway=gateway, locale=locale)
