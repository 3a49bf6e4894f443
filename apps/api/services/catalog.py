"""Tool and credit pack catalog."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.credit_pack import CreditPack
from models.tool import Tool
from services.credits import list_active_credit_packs
from services.locale import LocaleContext
from services.store_errors import store_failure

logger = logging.getLogger(__name__)

TOOL_FIELDS = ("name", "description", "credit_cost", "is_free", "is_active")
PACK_FIELDS = ("name", "credits", "bonus_credits", "price", "is_active")


def serialize_tool(tool: Tool) -> Dict[str, Any]:
    return {
        "id": tool.id,
        "name": tool.name,
        "description": tool.description,
        "credit_cost": int(tool.credit_cost or 0),
        "is_free": bool(tool.is_free),
        "is_active": bool(tool.is_active),
    }


def serialize_pack(pack: CreditPack) -> Dict[str, Any]:
    return {
        "id": pack.id,
        "name": pack.name,
        "credits": int(pack.credits or 0),
        "bonus_credits": int(pack.bonus_credits or 0),
        "total_credits": pack.total_credits,
        "price": str(Decimal(pack.price).quantize(Decimal("0.01"))) if pack.price is not None else None,
        "is_active": bool(pack.is_active),
    }


async def list_active_tools(db: AsyncSession):
    result = await db.execute(select(Tool).where(Tool.is_active.is_(True)).order_by(Tool.credit_cost.asc()))
    return [serialize_tool(tool) for tool in result.scalars().all()]


async def list_active_packs(db: AsyncSession):
    return [serialize_pack(pack) for pack in await list_active_credit_packs(db)]


async def _save(db: AsyncSession, row, *, event: str, locale: LocaleContext) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        raise await store_failure(db, exc, event=event, detail=locale.t("errors.generic"), id=row.id) from exc


async def create_tool(db: AsyncSession, fields: Dict[str, Any], *, locale: LocaleContext) -> Dict[str, Any]:
    tool = Tool(**{name: fields[name] for name in TOOL_FIELDS if fields.get(name) is not None})
    db.add(tool)
    await _save(db, tool, event="create_tool", locale=locale)
    logger.info("tool_created tool=%s cost=%s", tool.id, tool.credit_cost)
    return serialize_tool(tool)


async def update_tool(
    tool_id: str,
    db: AsyncSession,
    fields: Dict[str, Any],
    *,
    locale: LocaleContext,
) -> Dict[str, Any]:
    result = await db.execute(select(Tool).where(Tool.id == tool_id))
    tool = result.scalar_one_or_none()
    if not tool:
        raise HTTPException(status_code=404, detail="Tool not found")
    for name in TOOL_FIELDS:
        if fields.get(name) is not None:
            setattr(tool, name, fields[name])
    await _save(db, tool, event="update_tool", locale=locale)
    return serialize_tool(tool)


async def create_pack(db: AsyncSession, fields: Dict[str, Any], *, locale: LocaleContext) -> Dict[str, Any]:
    pack = CreditPack(**{name: fields[name] for name in PACK_FIELDS if fields.get(name) is not None})
    db.add(pack)
    await _save(db, pack, event="create_pack", locale=locale)
    logger.info("credit_pack_created pack=%s credits=%s", pack.id, pack.total_credits)
    return serialize_pack(pack)


async def update_pack(
    pack_id: str,
    db: AsyncSession,
    fields: Dict[str, Any],
    *,
    locale: LocaleContext,
) -> Dict[str, Any]:
    result = await db.execute(select(CreditPack).where(CreditPack.id == pack_id))
    pack = result.scalar_one_or_none()
    if not pack:
        raise HTTPException(status_code=404, detail=locale.t("credits.packNotFound"))
    for name in PACK_FIELDS:
        if fields.get(name) is not None:
            setattr(pack, name, fields[name])
    await _save(db, pack, event="update_pack", locale=locale)
    return serialize_pack(pack)
