"""Address search and order placement router."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_locale_context, require_approved
from routers.rate_limit import rate_limit
from services.locale import LocaleContext
from services.orders import list_orders, place_order, search_address

router = APIRouter()


class AddressSearchRequest(BaseModel):
    address: str = Field(max_length=500)


class PlaceOrderRequest(BaseModel):
    searched_address: str = Field(max_length=500)
    options: List[str] = Field(default_factory=list)
    user_id: Optional[str] = None


@router.post("/search")
async def address_search(
    request: AddressSearchRequest,
    _rate_limit: None = Depends(rate_limit("address_search", limit=120, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    locale: LocaleContext = Depends(get_locale_context),
):
    return await search_address(request.address, locale=locale)


@router.post("")
async def create_order(
    request: PlaceOrderRequest,
    _rate_limit: None = Depends(rate_limit("orders_create", limit=60, window_seconds=3600)),
    auth: AuthContext = Depends(require_approved),
    locale: LocaleContext = Depends(get_locale_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, request.user_id)
    return await place_order(
        scoped_user_id,
        db,
        searched_address=request.searched_address,
        tool_ids=request.options,
        locale=locale,
    )


@router.get("")
async def order_history(
    limit: int = Query(default=10, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return {"items": await list_orders(auth.user_id, db, limit=limit)}
